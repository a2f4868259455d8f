#!/usr/bin/env python3
"""
SlideGenius Pitch Deck Backend
Flask application exposing AI slide generation, slide regeneration,
speaker notes and deck export
"""

import io
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import Blueprint, Flask, current_app, jsonify, request, send_file
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from ai_gateway import GenerationGateway, build_completion_client, build_outline_prompt
from deck_config import Config, configure_logging
from deck_errors import ErrorKind, PitchDeckError, ValidationError
from deck_exporters import EXPORT_FORMATS
from deck_models import Slide
from deck_state import initialize

configure_logging()
logger = logging.getLogger(__name__)

# Rate limits are configured per app via RATELIMIT_* settings
limiter = Limiter(key_func=get_remote_address)

api = Blueprint('api', __name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.INVALID_RESPONSE: 502,
    ErrorKind.UPSTREAM: 503,
}

OUTLINE_FORM_FIELDS = ('company_name', 'industry', 'problem', 'solution', 'business_model', 'financials')


def _gateway() -> GenerationGateway:
    return current_app.extensions['generation_gateway']


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _slides_payload(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    slides = data.get('slides')
    if not slides:
        raise ValidationError("No slides provided")
    if not isinstance(slides, list) or not all(isinstance(s, dict) for s in slides):
        raise ValidationError("slides must be a list of slide objects")
    return slides


# API Routes
@api.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "ai_provider": current_app.config['AI_PROVIDER'],
        "export_formats": sorted(EXPORT_FORMATS),
    })


@api.route('/generate-outline', methods=['POST'])
@limiter.limit("10 per hour")
def generate_outline():
    """Generate a complete slide list from the structured business prompt"""
    data = _json_body()
    prompt = data.get('prompt')

    # The form fields may also be sent individually
    if not prompt and any(data.get(name) for name in OUTLINE_FORM_FIELDS):
        prompt = build_outline_prompt(**{name: str(data.get(name) or '') for name in OUTLINE_FORM_FIELDS})

    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("prompt is required")

    slides = _gateway().generate_deck(prompt)
    return jsonify({"slides": [slide.to_dict() for slide in slides]})


@api.route('/regenerate-slide', methods=['POST'])
@limiter.limit("30 per hour")
def regenerate_slide():
    """Revise a single slide using the user's feedback"""
    data = _json_body()
    slide_data = data.get('slide')
    if not isinstance(slide_data, dict):
        raise ValidationError("slide is required")

    feedback = data.get('feedback') or ''
    revised = _gateway().regenerate_slide(Slide.from_dict(slide_data), str(feedback))
    return jsonify({"slide": revised.to_dict()})


@api.route('/speaker-notes', methods=['POST'])
@limiter.limit("30 per hour")
def speaker_notes():
    """Generate presenter notes for one slide"""
    data = _json_body()
    title = data.get('title') or ''
    content = data.get('content') or ''

    notes = _gateway().generate_speaker_notes(str(title), str(content))
    return jsonify({"notes": notes})


@api.route('/export/<fmt>', methods=['POST'])
@limiter.limit("20 per hour")
def export_deck(fmt: str):
    """Export the deck as pdf, pptx or docx"""
    export_format = EXPORT_FORMATS.get(fmt.lower())
    if export_format is None:
        return jsonify({
            "error": ErrorKind.VALIDATION.value,
            "message": f"Unsupported export format '{fmt}'"
        }), 404

    deck = initialize(_slides_payload(_json_body()))
    payload = export_format.encoder(deck)

    return send_file(
        io.BytesIO(payload),
        mimetype=export_format.mimetype,
        as_attachment=True,
        download_name=export_format.filename
    )


# Error handlers
def handle_pitch_deck_error(error: PitchDeckError):
    """Translate application errors into JSON responses"""
    status = STATUS_BY_KIND.get(error.kind, 500)
    if status >= 500:
        logger.error(f"{error.kind.value}: {error.message}")
    else:
        logger.warning(f"{error.kind.value}: {error.message}")
    return jsonify(error.to_dict()), status


def ratelimit_handler(e):
    """Handle rate limit exceeded"""
    return jsonify({
        "error": "Rate limit exceeded",
        "message": str(e.description)
    }), 429


def internal_error(error):
    """Handle internal server errors"""
    logger.error(f"Internal error: {getattr(error, 'original_exception', error)}")
    return jsonify({
        "error": "Internal server error",
        "message": "An unexpected error occurred"
    }), 500


def create_app(config: Optional[Any] = None, completion_client=None) -> Flask:
    """Build the Flask application.

    A completion client can be injected; otherwise one is created from the
    configured AI provider. Raises ConfigurationError when no credential is
    available, so the server never starts without one.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, Mapping):
        app.config.from_mapping(config)
    elif config is not None:
        app.config.from_object(config)

    client = completion_client or build_completion_client(app.config)
    app.extensions['generation_gateway'] = GenerationGateway(client)

    CORS(app, origins=app.config['CORS_ORIGINS'])
    limiter.init_app(app)

    app.register_blueprint(api)
    app.register_error_handler(PitchDeckError, handle_pitch_deck_error)
    app.register_error_handler(429, ratelimit_handler)
    app.register_error_handler(500, internal_error)

    logger.info(f"Pitch deck backend ready (AI provider: {app.config['AI_PROVIDER']})")
    return app


def main():
    try:
        app = create_app()
    except PitchDeckError as e:
        logger.critical(f"Cannot start pitch deck backend: {e.message}")
        raise SystemExit(1)

    port = app.config['PORT']
    debug = app.config['DEBUG']

    print(f"""
    SlideGenius Backend Starting...
    ===============================
    Port: {port}
    Debug: {debug}
    AI Provider: {app.config['AI_PROVIDER']}

    Endpoints:
    - POST /generate-outline              - Generate slides from a business prompt
    - POST /regenerate-slide              - Revise one slide from feedback
    - POST /speaker-notes                 - Generate speaker notes
    - POST /export/<pdf|pptx|docx>        - Export the deck
    - GET  /health                        - Health check

    To test:
    curl -X POST http://localhost:{port}/generate-outline \\
         -H "Content-Type: application/json" \\
         -d '{{"prompt": "Company Name: TechCo\\nIndustry: SaaS\\nProblem Statement: Slow processes"}}'
    """)

    app.run(host='0.0.0.0', port=port, debug=debug)


# Main execution
if __name__ == '__main__':
    main()

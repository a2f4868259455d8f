"""Test doubles for the AI completion client."""


class FakeCompletionClient:
    """Returns queued replies in order; queued exceptions are raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def complete(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply

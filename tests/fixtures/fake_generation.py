class FakeGenerationClient:
    """Stands in for ``GenerationClient``; replays canned responses in order."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def complete(self, system_prompt, user_prompt, max_tokens, temperature, request_id=None, kind=None):
        self.calls.append({
            'system_prompt': system_prompt,
            'user_prompt': user_prompt,
            'max_tokens': max_tokens,
            'temperature': temperature,
            'kind': kind,
        })
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

"""
Services Layer

Tournament engine services that:
- Accept domain inputs (tournaments, teams, a BracketStore or a session)
- Return domain outputs (models, dataclasses, dicts)
- Do NOT depend on HTTP request/response objects
- Raise BracketError subclasses; routes translate them to status codes
"""

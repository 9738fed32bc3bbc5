"""DTOs for Identity app."""
from ninja import Schema


class TokenRequest(Schema):
    username: str

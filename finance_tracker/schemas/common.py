"""
Types shared by the request and response schemas.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import Field, PlainSerializer


# Monetary amount as it crosses the API boundary: validated as a
# 2-place Decimal, emitted as a JSON number rather than a string.
Money = Annotated[
    Decimal,
    Field(max_digits=12, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# 0-100 with 2 decimal places, emitted as a JSON number
Percentage = Annotated[
    Decimal,
    Field(ge=0, le=100),
    PlainSerializer(float, return_type=float, when_used="json"),
]

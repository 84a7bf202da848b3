from typing import Generic, Optional, TypeVar

from src.domain.base import CamelModel

T = TypeVar("T")


class Envelope(CamelModel, Generic[T]):
    """Uniform success body: {success, message, data}"""

    success: bool = True
    message: str
    data: Optional[T] = None

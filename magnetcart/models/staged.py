from dataclasses import dataclass, field
from uuid import uuid4


@dataclass(frozen=True)
class RawFile:
    """A photo as picked by the customer, before cropping."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        """Size of the file in bytes."""
        return len(self.data)


@dataclass
class StagedImage:
    """
    A cropped photo waiting to become part of a package.

    Lives only in memory while the package is assembled. The full image is
    what gets uploaded; the thumbnail is for previews and the cart.
    """

    full_image: bytes = field(repr=False)
    thumbnail: bytes = field(repr=False)
    display_name: str
    id: str = field(default_factory=lambda: uuid4().hex)

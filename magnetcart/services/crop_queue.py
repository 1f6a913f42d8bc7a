"""
Sequential crop queue.

Photos are cropped strictly one at a time, in the order they were picked.
The queue and its cursor only ever change together: `advance()` is the
single transition, and an exhausted queue resets itself in the same step.

INVARIANTS:
- 0 <= cursor < len(queue) whenever the queue is non-empty
- cursor == 0 whenever the queue is empty
"""

from collections.abc import Sequence

from magnetcart.models.staged import RawFile


class CropQueue:
    """Pending raw files and the position of the one being edited."""

    def __init__(self) -> None:
        self._files: list[RawFile] = []
        self._cursor = 0

    def load(self, files: Sequence[RawFile]) -> RawFile:
        """
        Replace the queue with a new batch and open the first file.

        Raises:
            ValueError: If files is empty
        """
        if not files:
            raise ValueError("Cannot load an empty batch into the crop queue")
        self._files = list(files)
        self._cursor = 0
        return self._files[0]

    def advance(self) -> RawFile | None:
        """
        Finish the current file and move to the next one.

        Returns the next file to edit, or None when the batch is done (the
        queue is then empty and the cursor back at 0).
        """
        if not self._files:
            return None

        if self._cursor + 1 < len(self._files):
            self._cursor += 1
            return self._files[self._cursor]

        self.reset()
        return None

    def reset(self) -> None:
        """Drop every queued file."""
        self._files = []
        self._cursor = 0

    @property
    def current(self) -> RawFile | None:
        """The file being edited, if any."""
        if not self._files:
            return None
        return self._files[self._cursor]

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def remaining(self) -> int:
        """Files not yet cropped, including the current one."""
        return len(self._files) - self._cursor if self._files else 0

    @property
    def is_active(self) -> bool:
        return bool(self._files)

    def __len__(self) -> int:
        return len(self._files)

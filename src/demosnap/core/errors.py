"""Exception types raised while exporting a demo."""


class DemosnapError(Exception):
    """Base exception for demo export errors"""


class DemoInputError(DemosnapError):
    """The demo could not be opened, its header read, or its body decoded."""


class OutputError(DemosnapError):
    """The output file or its writer could not be created."""


class SinkUnavailableError(OutputError):
    """The writer became unusable mid-file; rows written so far are kept."""


class RowWriteError(DemosnapError):
    """A single snapshot row could not be written."""

    def __init__(self, player_name: str, message: str, original_error: Exception | None = None):
        self.player_name = player_name
        self.original_error = original_error
        super().__init__(f"Error writing row for {player_name}: {message}")

class KepifyError(Exception):
    """Base class for failures that abort a whole run."""


class SourceUnavailable(KepifyError):
    pass


class EmptyCollection(KepifyError):
    pass


class InvalidProposal(KepifyError):
    """One or more KEPs failed to parse. failures is a list of (filename, ParseError)."""

    def __init__(self, failures):
        self.failures = list(failures)
        if len(self.failures) == 1:
            filename, error = self.failures[0]
            message = f"{filename} has an error: {error}"
        else:
            lines = [f"\t{filename}: {error}" for filename, error in self.failures]
            message = f"{len(self.failures)} KEPs have errors:\n" + "\n".join(lines)
        super().__init__(message)


class OutputIOError(KepifyError):
    pass

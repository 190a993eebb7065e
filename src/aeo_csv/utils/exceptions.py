class CodecError(Exception):
    """
    Base exception for all topic/prompt CSV codec errors
    """
    pass


class ValidationError(CodecError):
    """
    Raised when an uploaded CSV cannot be accepted.
    `message` is safe to show next to the upload control.
    """
    default_message = "CSV file is invalid."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NoValidRowsError(ValidationError):
    default_message = "No valid rows found in CSV."


class EmptyDocumentError(NoValidRowsError):
    default_message = "CSV file is empty or missing data rows."


class MissingRequiredColumnError(ValidationError):
    """
    Raised when a header row is present but required columns
    could not be resolved by any alias.
    """

    def __init__(self, missing_columns):
        self.missing_columns = list(missing_columns)
        quoted = [f"'{c}'" for c in self.missing_columns]
        if len(quoted) > 1:
            names = ", ".join(quoted[:-1]) + f" and {quoted[-1]}"
            message = f"CSV must contain {names} columns"
        else:
            message = f"CSV must contain {quoted[0]} column"
        super().__init__(message)


class UnknownColumnSpecError(CodecError):
    """
    Raised when a column spec name is not registered
    """
    pass

class LoadError(RuntimeError):
    pass


class ConfigurationError(LoadError):
    pass


class ConnectivityError(LoadError):
    pass


class SchemaError(LoadError):
    pass


class IngestError(LoadError):
    pass


class VerificationError(LoadError):
    pass


class LedgerError(LoadError):
    pass


class VerificationMismatch(UserWarning):
    def __init__(self, rows_loaded: int, expected: int) -> None:
        super().__init__(f"loaded {rows_loaded} rows, expected {expected}")
        self.rows_loaded = rows_loaded
        self.expected = expected

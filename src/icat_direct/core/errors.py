from sqlalchemy.exc import DBAPIError


class IcatDirectError(Exception):
    """Base class for errors raised before a query reaches the ICAT."""


class InvalidArgument(IcatDirectError, ValueError):
    """Raised for sort columns or sort orders outside the whitelist."""


class UnknownQuery(IcatDirectError, LookupError):
    """Raised when a query name has no template in the catalog."""

    def __init__(self, name: object) -> None:
        super().__init__(f"query {name} is not defined")
        self.name = name


# Database failures surface as the driver reported them.
QueryExecutionFailure = DBAPIError

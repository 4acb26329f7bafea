"""Custom exception hierarchy for AppStandard Lite.

Codec functions never raise for malformed input (they return None). The
exceptions below cover the operations that talk to collaborators or that
receive structurally invalid requests: merging, importing, bundling,
recurrence expansion and configuration loading.
"""


class AppStandardError(Exception):
    """Base exception for all AppStandard Lite errors.

    All custom exceptions in the package inherit from this base class so
    request handlers can catch a single type and map it to a response.
    """


class MergeValidationError(AppStandardError):
    """A merge, import or export request was rejected before any store call.

    Raised when:
    - The source id list is empty
    - Fewer or more source ids than the configured bounds were supplied
    - The target collection name is blank

    Should result in a user-facing 400 Bad Request style response.
    """


class CollectionNotFoundError(AppStandardError):
    """A referenced collection does not exist in the store.

    Raised when:
    - A merge source id is unknown to the collection store
    - An import or clean-up target id is unknown to the collection store
    """


class CollectionKindMismatchError(MergeValidationError):
    """Merge sources are not all of the same kind.

    Raised when:
    - A calendar is merged with an address book or task list
    """


class BundleError(AppStandardError):
    """Bundle creation, retrieval or deletion failed.

    Raised when:
    - A bundle is requested for an empty source list
    - The bundle store returns no content for a token
    """


class RRuleExpansionError(AppStandardError):
    """Recurrence rule expansion failed."""


class RRuleParseError(RRuleExpansionError):
    """Recurrence rule text could not be parsed.

    Raised when:
    - The RRULE string is empty
    - The RRULE is missing the FREQ part
    - A numeric part (INTERVAL, COUNT) is not an integer
    """


class ConfigurationError(AppStandardError, ValueError):
    """Configuration file content is invalid.

    Raised when:
    - The top level of a YAML/JSON config file is not a mapping
    - The file cannot be decoded as YAML or JSON
    """

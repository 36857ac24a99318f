"""
Errors raised by version-checked writes.
"""


class ConcurrentModificationError(Exception):
    """
    A conditional UPDATE matched no row: the stored version moved on after
    the writer read the record.
    """

    def __init__(self, model_name=None, object_id=None, expected_version=None, actual_version=None):
        self.model_name = model_name
        self.object_id = object_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.message = (
            f"{model_name} {object_id} is at version {actual_version}, "
            f"not {expected_version}."
        )
        super().__init__(self.message)

"""Exceptions raised by the service layer besides ValueError / PermissionError."""


class ConflictError(Exception):
    """
    Изменение основано на устаревшей версии записи.

    Клиент прислал version, которая уже не совпадает с текущей:
    нужно перечитать запись и повторить изменение.
    """

    def __init__(self, resource: str, resource_id: int, expected: int, actual: int):
        self.resource = resource
        self.resource_id = resource_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{resource} {resource_id} was modified concurrently "
            f"(sent version {expected}, current version {actual})"
        )

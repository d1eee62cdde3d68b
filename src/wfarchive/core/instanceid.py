"""Instance identity for archive ownership."""


class StaticInstanceIDService:
    """InstanceIDService returning a fixed, configured identifier.

    Multiple controllers can share one archive database; each only sees
    records written under its own instance id. An empty id is the
    unnamed default instance.
    """

    def __init__(self, instance_id: str = "") -> None:
        self._instance_id = instance_id

    def instance_id(self) -> str:
        return self._instance_id

    def __repr__(self) -> str:
        return f"StaticInstanceIDService({self._instance_id!r})"

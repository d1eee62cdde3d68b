"""Tests for the static instance id service."""

from wfarchive.contracts import InstanceIDService
from wfarchive.core.instanceid import StaticInstanceIDService


class TestStaticInstanceIDService:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(StaticInstanceIDService("a"), InstanceIDService)

    def test_returns_configured_id(self) -> None:
        assert StaticInstanceIDService("controller-a").instance_id() == "controller-a"

    def test_default_is_empty(self) -> None:
        assert StaticInstanceIDService().instance_id() == ""

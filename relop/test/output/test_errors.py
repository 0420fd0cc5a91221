from __future__ import annotations

import pytest

from relop.core.errors import ErrorCode
from relop.output.console import MockConsole
from relop.output.errors import print_release_error, release_error_exit_code
from relop.services.release.errors import (
    AuthError,
    DependencyCycleError,
    InvalidInputError,
    MetadataError,
    OrderViolationError,
    RegistryError,
    ReleaseError,
    TransientRegistryError,
)


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (MetadataError(message="no PR list"), "error: metadata: no PR list"),
        (AuthError(message="token rejected"), "error: auth: token rejected"),
        (DependencyCycleError(cycle=("a", "b", "a")), "error: plan: dependency cycle: a -> b -> a"),
        (
            OrderViolationError(violations=(("b", "a"),)),
            "error: plan: package order violates dependencies: b before a",
        ),
        (InvalidInputError(message="listed twice"), "error: input: listed twice"),
        (
            TransientRegistryError(message="503"),
            "error: registry (retries exhausted): 503",
        ),
        (RegistryError(message="name taken"), "error: registry: name taken"),
    ],
)
def test_print_release_error_prefixes_kind(error: ReleaseError, expected: str) -> None:
    console = MockConsole()
    print_release_error(error, console)
    assert console.messages[0] == expected
    assert release_error_exit_code(error) == int(ErrorCode.FAILURE)


def test_print_release_error_includes_hint() -> None:
    console = MockConsole()
    print_release_error(MetadataError(message="bad", hint="check the token"), console)
    assert console.messages == ["error: metadata: bad", "hint: check the token"]

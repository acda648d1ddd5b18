"""Smoke test to verify the package imports and wires up."""

from __future__ import annotations


def test_import() -> None:
    import opencall

    assert opencall.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from opencall.cli import main

    assert callable(main)


def test_subpackage_imports() -> None:
    from opencall.protocol import OperationDispatcher, RequestEnvelope, ResponseEnvelope
    from opencall.registry import BuildResult, OperationDescriptor, build_registry

    assert OperationDispatcher is not None
    assert RequestEnvelope is not None
    assert ResponseEnvelope is not None
    assert BuildResult is not None
    assert OperationDescriptor is not None
    assert callable(build_registry)


def test_lazy_import_from_opencall() -> None:
    import opencall

    assert opencall.OperationDispatcher is not None
    assert opencall.DomainError is not None
    assert callable(opencall.build_registry)
    assert callable(opencall.build_registry_from_modules)


def test_cli_help() -> None:
    from click.testing import CliRunner

    from opencall.cli import main

    result = CliRunner().invoke(main, ["-h"])
    assert result.exit_code == 0
    assert "registry" in result.output
    assert "call" in result.output

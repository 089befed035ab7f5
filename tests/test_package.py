"""Basic package tests for dependency-policy."""


def test_package_imports() -> None:
    """Test that the main package can be imported."""
    import dependency_policy

    assert dependency_policy.__version__ == "0.1.0"


def test_cli_imports() -> None:
    """Test that the CLI module can be imported."""
    from dependency_policy.cli import main

    assert main is not None


def test_subpackages_import() -> None:
    """Test that all subpackages can be imported."""
    import dependency_policy.analysis
    import dependency_policy.config
    import dependency_policy.inputs
    import dependency_policy.models
    import dependency_policy.output

    assert dependency_policy.models is not None
    assert dependency_policy.analysis is not None
    assert dependency_policy.config is not None
    assert dependency_policy.inputs is not None
    assert dependency_policy.output is not None

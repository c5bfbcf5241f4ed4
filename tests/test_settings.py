"""Unit tests for settings loading and project resolution."""

from gce_tui.settings import DEFAULT_SETTINGS, PROJECT_ENV_VAR, Settings, load_settings, resolve_project_id


def test_missing_config_returns_defaults(tmp_path) -> None:
    assert load_settings(tmp_path / "absent.yaml") == DEFAULT_SETTINGS


def test_empty_config_returns_defaults(tmp_path) -> None:
    path = tmp_path / "gce-tui.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(path) == DEFAULT_SETTINGS


def test_full_config(tmp_path) -> None:
    path = tmp_path / "gce-tui.yaml"
    path.write_text(
        "project: my-project\n"
        "ssh:\n"
        "  tunnel_through_iap: true\n"
        "  internal_ip: 'yes'\n"
        "  extra_args:\n"
        "    - --ssh-flag=-A\n"
        "    - ''\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.project == "my-project"
    assert settings.tunnel_through_iap is True
    assert settings.internal_ip is True
    assert settings.extra_args == ("--ssh-flag=-A",)
    assert settings.ssh_args() == ("--tunnel-through-iap", "--internal-ip", "--ssh-flag=-A")


def test_malformed_values_fall_back(tmp_path) -> None:
    path = tmp_path / "gce-tui.yaml"
    path.write_text("project: '  '\nssh: [1, 2]\n", encoding="utf-8")

    settings = load_settings(path)

    assert settings.project is None
    assert settings.tunnel_through_iap is False
    assert settings.extra_args == ()


def test_resolve_project_prefers_cli() -> None:
    settings = Settings(project="from-config")
    environ = {PROJECT_ENV_VAR: "from-env"}
    assert resolve_project_id("from-cli", settings, environ) == "from-cli"
    assert resolve_project_id(None, settings, environ) == "from-env"
    assert resolve_project_id(None, settings, {}) == "from-config"


def test_resolve_project_missing() -> None:
    assert resolve_project_id(None, Settings(), {PROJECT_ENV_VAR: ""}) is None

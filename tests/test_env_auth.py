from issuesync.env_auth import EnvAuthConfig, EnvironmentAuthManager, create_env_auth_manager


def test_env_auth_config_defaults():
    config = EnvAuthConfig()

    assert config.load_dotenv is True
    assert config.dotenv_path is None
    assert config.github_token_var == "GITHUB_TOKEN"
    assert "INPUT_REPO-TOKEN" in config.alternatives


def test_environment_auth_manager_no_token():
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))

    assert manager.get_github_token() is None
    assert not manager.dotenv_loaded


def test_environment_auth_manager_with_token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", " test_token_123 ")
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))

    assert manager.get_github_token() == "test_token_123"


def test_action_input_token_is_used(monkeypatch):
    monkeypatch.setenv("INPUT_REPO-TOKEN", "from_action_input")
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))

    assert manager.get_github_token() == "from_action_input"


def test_environment_auth_manager_alternative_tokens(monkeypatch):
    monkeypatch.setenv("GH_TOKEN", "alt_token_456")
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))

    assert manager.get_github_token() == "alt_token_456"


def test_dotenv_file_is_loaded(monkeypatch, tmp_path):
    # register GITHUB_TOKEN with monkeypatch so the value dotenv sets is undone
    monkeypatch.setenv("GITHUB_TOKEN", "placeholder")
    monkeypatch.delenv("GITHUB_TOKEN")
    env_file = tmp_path / "custom.env"
    env_file.write_text("GITHUB_TOKEN=from_dotenv\n", encoding="utf-8")

    manager = create_env_auth_manager(EnvAuthConfig(dotenv_path=str(env_file)))

    assert manager.dotenv_loaded
    assert manager.get_github_token() == "from_dotenv"


def test_dotenv_does_not_override_existing(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_TOKEN", "from_env")
    env_file = tmp_path / ".env"
    env_file.write_text("GITHUB_TOKEN=from_dotenv\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    manager = create_env_auth_manager()

    assert manager.dotenv_loaded
    assert manager.get_github_token() == "from_env"


def test_online_environment_detection(monkeypatch):
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))
    assert not manager.is_online_environment()

    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    assert manager.is_online_environment()


def test_authentication_recommendations(monkeypatch):
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))
    assert any("GITHUB_TOKEN" in r for r in manager.get_authentication_recommendations())

    monkeypatch.setenv("CI", "1")
    assert any("issues: write" in r for r in manager.get_authentication_recommendations())

    monkeypatch.setenv("GITHUB_TOKEN", "x")
    assert manager.get_authentication_recommendations() == []

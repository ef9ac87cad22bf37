import os
from pathlib import Path
from textwrap import dedent

import pytest
import yaml

from jiraworklog import storage
from jiraworklog.errors import ConfigExistsError, ConfigNotFoundError, MalformedConfigError
from jiraworklog.models import AccessToken, BasicApiToken, Config, Context

SINGLE = dedent(
    """
    jira_domain: https://example.atlassian.net/
    authorization:
      username: me@example.com
      api_token: secret
    """
)

MULTIPLE = dedent(
    """
    - name: cloud
      jira_domain: https://example.atlassian.net
      authorization:
        username: me@example.com
        api_token: secret
    - name: onprem
      jira_domain: https://jira.example.com
      authorization:
        access_token: token-123
    """
)


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yml"
    path.write_text(text)
    return path


def test_load_single_context(tmp_path):
    config = storage.load_config(write(tmp_path, SINGLE))
    assert config.single is True
    assert config.contexts == (
        Context(
            jira_domain="https://example.atlassian.net",
            authorization=BasicApiToken(username="me@example.com", api_token="secret"),
        ),
    )


def test_load_multiple_contexts_in_order(tmp_path):
    config = storage.load_config(write(tmp_path, MULTIPLE))
    assert config.single is False
    assert config.names() == ["cloud", "onprem"]
    assert config.contexts[1].authorization == AccessToken(access_token="token-123")


def test_single_item_list_is_not_single(tmp_path):
    text = dedent(
        """
        - jira_domain: https://jira.example.com
          authorization:
            access_token: abc
        """
    )
    config = storage.load_config(write(tmp_path, text))
    assert config.single is False
    assert len(config.contexts) == 1


def test_both_auth_variants_are_malformed(tmp_path):
    text = dedent(
        """
        jira_domain: https://jira.example.com
        authorization:
          username: me
          api_token: secret
          access_token: abc
        """
    )
    with pytest.raises(MalformedConfigError, match="ambiguous"):
        storage.load_config(write(tmp_path, text))


@pytest.mark.parametrize(
    "authorization",
    [
        {},
        {"username": "me"},
        {"api_token": "secret"},
        {"access_token": ""},
        "token",
    ],
)
def test_incomplete_auth_is_malformed(authorization):
    with pytest.raises(MalformedConfigError):
        Config.deserialize({"jira_domain": "https://jira.example.com", "authorization": authorization})


@pytest.mark.parametrize("domain", [None, "", "jira.example.com", "ftp://jira.example.com", "https://"])
def test_invalid_domain_is_malformed(domain):
    payload = {"jira_domain": domain, "authorization": {"access_token": "abc"}}
    with pytest.raises(MalformedConfigError):
        Config.deserialize(payload)


def test_multiple_contexts_need_unique_names():
    auth = {"access_token": "abc"}
    missing = [
        {"name": "a", "jira_domain": "https://a.example.com", "authorization": auth},
        {"jira_domain": "https://b.example.com", "authorization": auth},
    ]
    duplicate = [
        {"name": "a", "jira_domain": "https://a.example.com", "authorization": auth},
        {"name": "a", "jira_domain": "https://b.example.com", "authorization": auth},
    ]
    with pytest.raises(MalformedConfigError, match="required"):
        Config.deserialize(missing)
    with pytest.raises(MalformedConfigError, match="more than once"):
        Config.deserialize(duplicate)


@pytest.mark.parametrize("text", ["", "[]", "42", "jira_domain: [unclosed"])
def test_unusable_documents_are_malformed(tmp_path, text):
    with pytest.raises(MalformedConfigError):
        storage.load_config(write(tmp_path, text))


def test_yaml_syntax_error_is_one_line_with_position(tmp_path):
    with pytest.raises(MalformedConfigError) as excinfo:
        storage.load_config(write(tmp_path, "jira_domain: a: b\n"))
    message = str(excinfo.value)
    assert "\n" not in message
    assert "mapping values are not allowed here (line 1, column" in message


def test_missing_file_reports_searched_paths(tmp_path):
    missing = tmp_path / "nope.yml"
    with pytest.raises(ConfigNotFoundError) as excinfo:
        storage.load_config(missing)
    assert excinfo.value.searched == [str(missing)]


@pytest.mark.skipif(os.name == "nt", reason="APPDATA is used on Windows")
def test_default_locations_follow_xdg_config_home(tmp_path, monkeypatch):
    monkeypatch.delenv(storage.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert storage.candidate_paths() == [
        tmp_path / "jwl" / "config.yml",
        tmp_path / "jwl" / "config.yaml",
    ]
    (tmp_path / "jwl").mkdir()
    (tmp_path / "jwl" / "config.yaml").write_text(SINGLE)
    assert storage.load_config().single is True


def test_env_var_overrides_location(tmp_path, monkeypatch):
    path = write(tmp_path, MULTIPLE)
    monkeypatch.setenv(storage.CONFIG_ENV_VAR, str(path))
    assert storage.load_config().names() == ["cloud", "onprem"]


def test_write_config_round_trips_and_refuses_overwrite(tmp_path):
    path = tmp_path / "nested" / "config.yml"
    config = Config(
        contexts=(
            Context(
                jira_domain="https://jira.example.com",
                authorization=AccessToken(access_token="abc"),
            ),
        ),
        single=True,
    )
    assert storage.write_config(config, path) == path
    assert yaml.safe_load(path.read_text()) == {
        "jira_domain": "https://jira.example.com",
        "authorization": {"access_token": "abc"},
    }
    assert storage.load_config(path) == config
    with pytest.raises(ConfigExistsError):
        storage.write_config(config, path)

import pytest

from dcu.config import ConfigurationError, load_config, parse_config, resolve_config_dir


def _write(tmp_path, text):
    p = tmp_path / "container-config.yaml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_config_applies_documented_defaults(tmp_path):
    path = _write(
        tmp_path,
        """
options:
  config_base_path: /volume1/docker
containers:
  web:
    image: nginx:latest
""",
    )
    cfg = load_config(path)

    o = cfg.options
    assert (o.network, o.timezone, o.restart) == ("host", "Europe/Amsterdam", "unless-stopped")
    assert o.prune is True
    assert o.always_run is False
    assert o.debug is False
    assert o.log_level == 1
    assert o.puid is None and o.pgid is None
    assert cfg.get("web").name == "web"
    assert cfg.get("web").arguments == {}
    assert cfg.get("ghost") is None


def test_load_config_accepts_camel_case_keys(tmp_path):
    path = _write(
        tmp_path,
        """
options:
  configBasePath: /data
  alwaysRun: true
  logLevel: 0
  PUID: 1000
  PGID: 1000
containers:
  sonarr:
    image: linuxserver/sonarr
    alwaysRun: false
    debug: true
    arguments:
      p: [[8989, 8989]]
""",
    )
    cfg = load_config(path)

    assert cfg.options.config_base_path == "/data"
    assert cfg.options.always_run is True
    assert cfg.options.log_level == 0
    assert (cfg.options.puid, cfg.options.pgid) == (1000, 1000)
    spec = cfg.get("sonarr")
    assert spec.always_run is False
    assert spec.debug is True
    assert spec.arguments == {"p": [[8989, 8989]]}


def test_containers_keep_declaration_order(tmp_path):
    path = _write(
        tmp_path,
        """
options: {config_base_path: /d}
containers:
  zeta: {image: zeta}
  alpha: {image: alpha}
  mid: {image: mid}
""",
    )
    assert list(load_config(path).containers) == ["zeta", "alpha", "mid"]


def test_missing_base_path_is_a_configuration_error(tmp_path):
    path = _write(tmp_path, "options:\n  network: bridge\ncontainers: {}\n")
    with pytest.raises(ConfigurationError, match="config_base_path"):
        load_config(path)


def test_empty_file_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError, match="config_base_path"):
        load_config(_write(tmp_path, ""))


def test_missing_file_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config(_write(tmp_path, "options: [unclosed\n"))


def test_non_mapping_root_is_rejected():
    with pytest.raises(ConfigurationError, match="mapping"):
        parse_config(["not", "a", "mapping"])


@pytest.mark.parametrize(
    "arguments",
    [
        {"v": "/just/a/string"},
        {"p": [[1, 2, 3]]},
        {"name": "other"},
        "not-a-map",
    ],
)
def test_malformed_container_arguments_are_rejected(arguments):
    with pytest.raises(ConfigurationError):
        parse_config({"options": {"config_base_path": "/d"}, "containers": {"web": {"image": "nginx", "arguments": arguments}}})


def test_container_without_image_is_rejected():
    with pytest.raises(ConfigurationError):
        parse_config({"options": {"config_base_path": "/d"}, "containers": {"web": {}}})


def test_options_are_immutable(make_config):
    cfg = make_config()
    with pytest.raises(Exception):
        cfg.options.network = "bridge"


@pytest.mark.parametrize(
    "base,expected",
    [
        ("/volume1/docker", "/volume1/docker/web/config"),
        ("/volume1/docker/", "/volume1/docker/web/config"),
        ("/volume1/docker///", "/volume1/docker/web/config"),
    ],
)
def test_resolve_config_dir(base, expected):
    assert resolve_config_dir(base, "web") == expected

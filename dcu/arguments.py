from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .runtime import CompiledCommand

if TYPE_CHECKING:
    from .config import GlobalDefaults


CONFIG_MOUNT_TARGET = "/config/"

_QUOTED_RE = re.compile(r"""^(".*"|'.*')$""", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s")


@dataclass(frozen=True)
class PairList:
    """Repeated host/target pairs, e.g. ``p``, ``v``, ``device``."""

    key: str
    pairs: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class KeyedMap:
    """Environment variables (``e``)."""

    key: str
    items: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class Scalar:
    key: str
    value: str


@dataclass(frozen=True)
class Flag:
    key: str
    enabled: bool


Argument = Union[PairList, KeyedMap, Scalar, Flag]

# Categories with a fixed shape; any other key is classified by its value.
_EXPECTED_KIND: dict[str, type] = {"p": PairList, "v": PairList, "device": PairList, "e": KeyedMap}


def conditional_quote(value: str) -> str:
    """Wrap ``value`` in double quotes if it holds whitespace and is not quoted yet."""
    if _QUOTED_RE.match(value):
        return value
    if _WHITESPACE_RE.search(value):
        return f'"{value}"'
    return value


def unquote(value: str) -> str:
    """Drop one matching pair of outer quotes, the way a shell would."""
    if _QUOTED_RE.match(value):
        return value[1:-1]
    return value


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"expected a string or number, got {type(value).__name__}")


def parse_argument(key: str, value: Any) -> Argument | None:
    """Classify one declared argument. ``None`` means it contributes nothing."""
    if value is None:
        return None

    if isinstance(value, bool):
        arg: Argument = Flag(key, value)
    elif isinstance(value, (str, int, float)):
        arg = Scalar(key, _text(value))
    elif isinstance(value, Mapping):
        try:
            # A null entry counts as undeclared, so defaults still apply.
            arg = KeyedMap(key, tuple((str(k), _text(v)) for k, v in value.items() if v is not None))
        except ValueError as e:
            raise ValueError(f"argument '{key}': {e}") from e
    elif isinstance(value, Sequence):
        pairs: list[tuple[str, str]] = []
        for item in value:
            if isinstance(item, str) or not isinstance(item, Sequence) or len(item) != 2:
                raise ValueError(f"argument '{key}' entries must be [host, target] pairs, got {item!r}")
            try:
                pairs.append((_text(item[0]), _text(item[1])))
            except ValueError as e:
                raise ValueError(f"argument '{key}': {e}") from e
        arg = PairList(key, tuple(pairs))
    else:
        raise ValueError(f"argument '{key}' has unsupported type {type(value).__name__}")

    expected = _EXPECTED_KIND.get(key)
    if expected is not None and not isinstance(arg, expected):
        raise ValueError(f"argument '{key}' must be a {expected.__name__}, got {type(arg).__name__}")
    return arg


def parse_arguments(raw: Mapping[str, Any] | None) -> list[Argument]:
    if not raw:
        return []
    out: list[Argument] = []
    for key, value in raw.items():
        arg = parse_argument(str(key), value)
        if arg is not None:
            out.append(arg)
    return out


def flag_name(key: str) -> str:
    return f"--{key}" if len(key) > 1 else f"-{key}"


def render_argument(arg: Argument, quote: Callable[[str], str] = conditional_quote) -> list[str]:
    """Render one argument; ``quote`` is applied to every value part."""
    prefix = flag_name(arg.key)
    tokens: list[str] = []
    if isinstance(arg, PairList):
        for host, target in arg.pairs:
            tokens += [prefix, f"{quote(host)}:{quote(target)}"]
    elif isinstance(arg, KeyedMap):
        for name, value in arg.items:
            tokens += ["-e", f"{name}={quote(value)}"]
    elif isinstance(arg, Scalar):
        tokens.append(f"{prefix}={quote(arg.value)}")
    elif isinstance(arg, Flag):
        if arg.enabled:
            tokens.append(prefix)
    else:
        raise TypeError(f"Unknown argument category: {arg!r}")
    return tokens


class ArgumentCompiler:
    """Turns a container's declared arguments into a ``docker create`` invocation.

    Global defaults are injected into a derived copy; the declared map is never
    touched. Order: declared keys first (in declaration order), then any of
    ``v``, ``e``, ``net``, ``restart`` the declaration did not have.
    """

    def __init__(self, defaults: GlobalDefaults, docker_bin: str = "docker"):
        self.defaults = defaults
        self.docker_bin = docker_bin

    def merge(self, declared: Mapping[str, Any] | None, config_dir: str) -> list[Argument]:
        args: dict[str, Argument] = {a.key: a for a in parse_arguments(declared)}

        mounts = args.get("v")
        user_pairs = mounts.pairs if isinstance(mounts, PairList) else ()
        args["v"] = PairList("v", (*user_pairs, (config_dir, CONFIG_MOUNT_TARGET)))

        env = args.get("e")
        env_items = list(env.items) if isinstance(env, KeyedMap) else []
        present = {k for k, _ in env_items}
        injected = {
            "TZ": self.defaults.timezone,
            "PGID": self.defaults.pgid,
            "PUID": self.defaults.puid,
        }
        for name, value in injected.items():
            if name not in present and value is not None:
                env_items.append((name, _text(value)))
        args["e"] = KeyedMap("e", tuple(env_items))

        if "net" not in args:
            args["net"] = Scalar("net", self.defaults.network)
        if "restart" not in args:
            args["restart"] = Scalar("restart", self.defaults.restart)

        return list(args.values())

    def compile(self, name: str, declared: Mapping[str, Any] | None, config_dir: str, image: str) -> CompiledCommand:
        tokens = [self.docker_bin, "create", f"--name={name}"]
        argv = list(tokens)
        for arg in self.merge(declared, config_dir):
            tokens += render_argument(arg)
            argv += render_argument(arg, quote=unquote)
        tokens.append(image)
        argv.append(image)
        return CompiledCommand(tuple(tokens), tuple(argv))

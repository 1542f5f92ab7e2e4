"""Usage counters of the bot's commands, rendered in the Prometheus text format."""

from __future__ import annotations

import re
import threading
from collections.abc import Mapping

_METRIC_NAME = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class Counter:
    """A monotonically increasing counter with constant labels."""

    def __init__(
        self, name: str, metric_name: str, help: str, labels: Mapping[str, str] | None = None
    ) -> None:
        labels = dict(labels or {})
        if not _METRIC_NAME.fullmatch(metric_name):
            raise ValueError(f"unable to create {name} counter: invalid metric name {metric_name!r}")
        if not help:
            raise ValueError(f"unable to create {name} counter: empty help")
        for label in labels:
            if not _LABEL_NAME.fullmatch(label) or label.startswith("__"):
                raise ValueError(f"unable to create {name} counter: invalid label name {label!r}")
        self.name = name
        self.metric_name = metric_name
        self.help = help
        self.labels: tuple[tuple[str, str], ...] = tuple(sorted(labels.items()))
        self._value = 0
        self._lock = threading.Lock()

    def inc(self) -> None:
        """Increase the counter by one."""
        with self._lock:
            self._value += 1

    @property
    def value(self) -> int:
        """The current value of the counter."""
        with self._lock:
            return self._value

    def _sample(self) -> str:
        labels = ",".join(f'{k}="{_escape_label_value(v)}"' for k, v in self.labels)
        suffix = f"{{{labels}}}" if labels else ""
        return f"{self.metric_name}{suffix} {_format_value(self.value)}"


class ComplexCommandCounters:
    """Counters of a command that is invoked first and finished later."""

    def __init__(self, invoked: Counter, finished: Counter) -> None:
        self._invoked = invoked
        self._finished = finished

    def invoked(self) -> None:
        """Count an invocation."""
        self._invoked.inc()

    def finished(self) -> None:
        """Count a completion."""
        self._finished.inc()


class BothModesCounters:
    """Counters of a command usable in a chat and inline."""

    def __init__(self, chat: Counter, inline: Counter) -> None:
        self.chat = chat
        self.inline = inline


class BothModesComplexCommandCounters:
    """Invocations in both modes, and completions."""

    def __init__(self, invoked: BothModesCounters, finished: Counter) -> None:
        self.invoked = invoked
        self.finished = finished


class DeepLinkedCommandsCounters:
    """Invocations by command or by deep link, and completions."""

    def __init__(self, invoked_by_command: Counter, invoked_by_deeplink: Counter, finished: Counter) -> None:
        self.invoked_by_command = invoked_by_command
        self.invoked_by_deeplink = invoked_by_deeplink
        self.finished = finished


class Registry:
    """A set of counters that are rendered together."""

    def __init__(self) -> None:
        self._counters: list[Counter] = []
        self._lock = threading.Lock()

    def register(self, counter: Counter) -> Registry:
        """Add a counter; raise ValueError if it clashes with a registered one."""
        with self._lock:
            for other in self._counters:
                if other.metric_name != counter.metric_name:
                    continue
                if other.help != counter.help:
                    raise ValueError(
                        f"unable to register the {counter.name} counter: "
                        f"inconsistent help for {counter.metric_name}"
                    )
                if [k for k, _ in other.labels] != [k for k, _ in counter.labels]:
                    raise ValueError(
                        f"unable to register the {counter.name} counter: "
                        f"inconsistent label names for {counter.metric_name}"
                    )
                if other.labels == counter.labels:
                    raise ValueError(
                        f"unable to register the {counter.name} counter: already registered"
                    )
            self._counters.append(counter)
        return self

    def render(self) -> str:
        """Render every registered counter in the Prometheus text format."""
        with self._lock:
            counters = list(self._counters)
        families: dict[str, list[Counter]] = {}
        for counter in counters:
            families.setdefault(counter.metric_name, []).append(counter)
        lines: list[str] = []
        for metric_name in sorted(families):
            members = sorted(families[metric_name], key=lambda c: [v for _, v in c.labels])
            lines.append(f"# HELP {metric_name} {_escape_help(members[0].help)}")
            lines.append(f"# TYPE {metric_name} counter")
            lines.extend(counter._sample() for counter in members)
        return "".join(line + "\n" for line in lines)


def _both_modes(name: str, metric_name: str, help: str, **labels: str) -> BothModesCounters:
    return BothModesCounters(
        chat=Counter(f"{name} (chat)", metric_name, help, {**labels, "mode": "chat"}),
        inline=Counter(f"{name} (inline)", metric_name, help, {**labels, "mode": "inline"}),
    )


_INLINE_HELP = "count of inline queries processed by the bot"
INLINE_COUNTER = ComplexCommandCounters(
    invoked=Counter("inline (query)", "inline_usage_total", _INLINE_HELP, {"state": "query"}),
    finished=Counter("inline (chosen)", "inline_usage_total", _INLINE_HELP, {"state": "chosen"}),
)
CMD_START_COUNTER = Counter("command_start", "command_start_usage_total", "count of /start invocations")
CMD_HELP_COUNTER = Counter("command_help", "command_help_usage_total", "count of /help invocations")
CMD_PRIVACY_COUNTER = Counter("command_privacy", "command_privacy_usage_total", "count of /privacy invocations")
CMD_GROW_COUNTER = _both_modes("command_grow", "command_grow_usage_total", "count of /grow invocations")
CMD_TOP_COUNTER = _both_modes("command_top", "command_top_usage_total", "count of /top invocations")

_LOAN_HELP = "count of /loan invocations"
CMD_LOAN_COUNTER = BothModesComplexCommandCounters(
    invoked=_both_modes("command_loan", "command_loan_usage_total", _LOAN_HELP, state="invoked"),
    finished=Counter(
        "command_loan (finished)", "command_loan_usage_total", _LOAN_HELP,
        {"state": "finished", "mode": "unknown"},
    ),
)
CMD_DOD_COUNTER = _both_modes(
    "command_dick_of_day", "command_dick_of_day_usage_total", "count of /dick_of_day invocations"
)
CMD_PVP_COUNTER = _both_modes("command_pvp", "command_pvp_usage_total", "count of /pvp invocations")
CMD_STATS = _both_modes("command_stats", "command_stats_usage_total", "count of /stats invocations")

_IMPORT_HELP = "count of /import invocations and successes"
CMD_IMPORT = ComplexCommandCounters(
    invoked=Counter("command_import (invoked)", "command_import_usage_total", _IMPORT_HELP, {"state": "invoked"}),
    finished=Counter("command_import (finished)", "command_import_usage_total", _IMPORT_HELP, {"state": "finished"}),
)

_PROMO_HELP = "count of /promo invocations and successes"
CMD_PROMO = DeepLinkedCommandsCounters(
    invoked_by_command=Counter(
        "command_promo (invoked)", "command_promo_usage_total", _PROMO_HELP, {"state": "invoked_by_command"}
    ),
    invoked_by_deeplink=Counter(
        "deeplink_promo (invoked)", "command_promo_usage_total", _PROMO_HELP, {"state": "invoked_by_deeplink"}
    ),
    finished=Counter("command_promo (finished)", "command_promo_usage_total", _PROMO_HELP, {"state": "finished"}),
)


def init() -> Registry:
    """Build a registry holding every counter of the bot."""
    registry = Registry()
    for counter in (
        INLINE_COUNTER._invoked,
        INLINE_COUNTER._finished,
        CMD_START_COUNTER,
        CMD_HELP_COUNTER,
        CMD_PRIVACY_COUNTER,
        CMD_GROW_COUNTER.chat,
        CMD_GROW_COUNTER.inline,
        CMD_TOP_COUNTER.chat,
        CMD_TOP_COUNTER.inline,
        CMD_LOAN_COUNTER.invoked.chat,
        CMD_LOAN_COUNTER.invoked.inline,
        CMD_LOAN_COUNTER.finished,
        CMD_DOD_COUNTER.chat,
        CMD_DOD_COUNTER.inline,
        CMD_PVP_COUNTER.chat,
        CMD_PVP_COUNTER.inline,
        CMD_STATS.chat,
        CMD_STATS.inline,
        CMD_IMPORT._invoked,
        CMD_IMPORT._finished,
        CMD_PROMO.invoked_by_command,
        CMD_PROMO.invoked_by_deeplink,
        CMD_PROMO.finished,
    ):
        registry.register(counter)
    return registry
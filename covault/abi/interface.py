"""
Contract interface codec.

Encodes calls, decodes results, parses event logs and revert payloads for a
JSON ABI, using eth-abi for the wire format. Values come back normalized:
checksummed addresses, ``0x`` hex strings for bytes, lists for arrays.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_utils import keccak, to_bytes, to_checksum_address

from ..core.models import LogEntry, ParsedError, ParsedLog

HexOrBytes = Union[str, bytes]


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def hex_to_bytes(value: HexOrBytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not value or value == "0x":
        return b""
    return to_bytes(hexstr=value)


def _split_array(abi_type: str) -> Tuple[str, bool]:
    """Return (element type, is_array) for ``T[]`` / ``T[n]``."""
    if abi_type.endswith("]"):
        return abi_type[: abi_type.rindex("[")], True
    return abi_type, False


def _is_dynamic(abi_type: str) -> bool:
    return abi_type in ("bytes", "string") or abi_type.endswith("]")


def normalize_input(abi_type: str, value: Any) -> Any:
    """Coerce a python value into what eth-abi expects for ``abi_type``."""
    element, is_array = _split_array(abi_type)
    if is_array:
        return [normalize_input(element, item) for item in value]
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes"):
        return hex_to_bytes(value)
    if abi_type.startswith(("uint", "int")):
        return int(value)
    return value


def normalize_output(abi_type: str, value: Any) -> Any:
    """Present a decoded eth-abi value in covault's conventions."""
    element, is_array = _split_array(abi_type)
    if is_array:
        return [normalize_output(element, item) for item in value]
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes"):
        return to_hex(value)
    return value


@dataclass
class AbiParam:
    name: str
    type: str
    indexed: bool = False


def _params(entries: Optional[Iterable[Dict[str, Any]]]) -> List[AbiParam]:
    return [
        AbiParam(name=e.get("name", ""), type=e["type"], indexed=e.get("indexed", False))
        for e in entries or []
    ]


def _signature(name: str, params: Sequence[AbiParam]) -> str:
    return f"{name}({','.join(p.type for p in params)})"


@dataclass
class FunctionFragment:
    name: str
    inputs: List[AbiParam]
    outputs: List[AbiParam] = field(default_factory=list)
    state_mutability: str = "nonpayable"

    @property
    def signature(self) -> str:
        return _signature(self.name, self.inputs)

    @property
    def selector(self) -> str:
        return to_hex(keccak(text=self.signature)[:4])

    @property
    def is_view(self) -> bool:
        return self.state_mutability in ("view", "pure")


@dataclass
class EventFragment:
    name: str
    inputs: List[AbiParam]
    anonymous: bool = False

    @property
    def signature(self) -> str:
        return _signature(self.name, self.inputs)

    @property
    def topic(self) -> str:
        return to_hex(keccak(text=self.signature))


@dataclass
class ErrorFragment:
    name: str
    inputs: List[AbiParam]

    @property
    def signature(self) -> str:
        return _signature(self.name, self.inputs)

    @property
    def selector(self) -> str:
        return to_hex(keccak(text=self.signature)[:4])


# Errors every contract can revert with
BUILTIN_ERRORS = [
    ErrorFragment(name="Error", inputs=[AbiParam(name="message", type="string")]),
    ErrorFragment(name="Panic", inputs=[AbiParam(name="code", type="uint256")]),
]


class ContractInterface:
    """Codec for one contract ABI."""

    def __init__(
        self,
        functions: Iterable[FunctionFragment],
        events: Iterable[EventFragment] = (),
        errors: Iterable[ErrorFragment] = (),
    ):
        self.functions: Dict[str, FunctionFragment] = {f.name: f for f in functions}
        self.events: Dict[str, EventFragment] = {e.name: e for e in events}
        self.errors: Dict[str, ErrorFragment] = {e.name: e for e in [*BUILTIN_ERRORS, *errors]}

        self._by_selector = {f.selector: f for f in self.functions.values()}
        self._by_topic = {e.topic: e for e in self.events.values() if not e.anonymous}
        self._errors_by_selector = {e.selector: e for e in self.errors.values()}

    @classmethod
    def from_abi(cls, abi: Iterable[Dict[str, Any]]) -> "ContractInterface":
        functions, events, errors = [], [], []
        for entry in abi:
            kind = entry.get("type", "function")
            if kind == "function":
                functions.append(FunctionFragment(
                    name=entry["name"],
                    inputs=_params(entry.get("inputs")),
                    outputs=_params(entry.get("outputs")),
                    state_mutability=entry.get("stateMutability", "nonpayable"),
                ))
            elif kind == "event":
                events.append(EventFragment(
                    name=entry["name"],
                    inputs=_params(entry.get("inputs")),
                    anonymous=entry.get("anonymous", False),
                ))
            elif kind == "error":
                errors.append(ErrorFragment(name=entry["name"], inputs=_params(entry.get("inputs"))))
        return cls(functions, events, errors)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def function(self, name: str) -> FunctionFragment:
        try:
            return self.functions[name]
        except KeyError:
            raise KeyError(f"Unknown function: {name}") from None

    def event(self, name: str) -> EventFragment:
        try:
            return self.events[name]
        except KeyError:
            raise KeyError(f"Unknown event: {name}") from None

    def error(self, name: str) -> ErrorFragment:
        try:
            return self.errors[name]
        except KeyError:
            raise KeyError(f"Unknown error: {name}") from None

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def encode_function_data(self, name: str, args: Sequence[Any] = ()) -> str:
        fragment = self.function(name)
        if len(args) != len(fragment.inputs):
            raise ValueError(
                f"{fragment.signature} takes {len(fragment.inputs)} arguments, got {len(args)}"
            )
        encoded = _encode_params(fragment.inputs, args)
        return fragment.selector + encoded.hex()

    def decode_function_data(self, data: HexOrBytes) -> Tuple[str, List[Any]]:
        """Decode calldata into (function name, args)."""
        raw = hex_to_bytes(data)
        if len(raw) < 4:
            raise ValueError("Calldata shorter than a selector")
        fragment = self._by_selector.get(to_hex(raw[:4]))
        if fragment is None:
            raise ValueError(f"Unknown function selector: {to_hex(raw[:4])}")
        return fragment.name, _decode_params(fragment.inputs, raw[4:])

    def encode_function_result(self, name: str, values: Sequence[Any]) -> str:
        fragment = self.function(name)
        return to_hex(_encode_params(fragment.outputs, values))

    def decode_function_result(self, name: str, data: HexOrBytes) -> Any:
        """Decode return data; a single output is unwrapped."""
        fragment = self.function(name)
        values = _decode_params(fragment.outputs, hex_to_bytes(data))
        if len(values) == 1:
            return values[0]
        return values

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def encode_log(self, name: str, args: Dict[str, Any]) -> Tuple[List[str], str]:
        """Encode event args into (topics, data)."""
        fragment = self.event(name)
        topics = [] if fragment.anonymous else [fragment.topic]
        body = [p for p in fragment.inputs if not p.indexed]
        for param in fragment.inputs:
            if not param.indexed:
                continue
            value = normalize_input(param.type, args[param.name])
            if _is_dynamic(param.type):
                topics.append(to_hex(keccak(encode([param.type], [value]))))
            else:
                topics.append(to_hex(encode([param.type], [value])))
        data = _encode_params(body, [args[p.name] for p in body])
        return topics, to_hex(data)

    def encode_topic(self, abi_type: str, value: Any) -> str:
        """Encode one indexed value as a filter topic."""
        return to_hex(encode([abi_type], [normalize_input(abi_type, value)]))

    def parse_log(self, log: LogEntry) -> Optional[ParsedLog]:
        """Decode a log, or None when its topic is not part of this interface."""
        if not log.topics:
            return None
        fragment = self._by_topic.get(log.topics[0].lower())
        if fragment is None:
            return None

        indexed = [p for p in fragment.inputs if p.indexed]
        body = [p for p in fragment.inputs if not p.indexed]
        if len(log.topics) - 1 != len(indexed):
            raise ValueError(f"Topic count mismatch for {fragment.signature}")

        args: Dict[str, Any] = {}
        for param, topic in zip(indexed, log.topics[1:]):
            if _is_dynamic(param.type):
                # Only the hash of dynamic indexed values is recoverable
                args[param.name] = topic
            else:
                (value,) = decode([param.type], hex_to_bytes(topic))
                args[param.name] = normalize_output(param.type, value)

        for param, value in zip(body, _decode_params(body, hex_to_bytes(log.data))):
            args[param.name] = value

        return ParsedLog(name=fragment.name, signature=fragment.signature, args=args, log=log)

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def encode_error(self, name: str, args: Sequence[Any] = ()) -> str:
        fragment = self.error(name)
        return fragment.selector + _encode_params(fragment.inputs, args).hex()

    def parse_error(self, data: HexOrBytes) -> ParsedError:
        """Decode revert data; raises ValueError for unknown selectors."""
        raw = hex_to_bytes(data)
        if len(raw) < 4:
            raise ValueError("Revert data shorter than a selector")
        fragment = self._errors_by_selector.get(to_hex(raw[:4]))
        if fragment is None:
            raise ValueError(f"Unknown error selector: {to_hex(raw[:4])}")
        return ParsedError(
            name=fragment.name,
            signature=fragment.signature,
            args=_decode_params(fragment.inputs, raw[4:]),
        )


def _encode_params(params: Sequence[AbiParam], values: Sequence[Any]) -> bytes:
    types = [p.type for p in params]
    return encode(types, [normalize_input(t, v) for t, v in zip(types, values)])


def _decode_params(params: Sequence[AbiParam], data: bytes) -> List[Any]:
    if not params:
        return []
    types = [p.type for p in params]
    return [normalize_output(t, v) for t, v in zip(types, decode(types, data))]

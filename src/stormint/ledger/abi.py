"""Contract interface adapter: JSON ABI lookup, call encoding, output decoding."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector

from stormint.errors import ArgumentMismatchError, InvalidFunctionError, QueryError

log = logging.getLogger(__name__)

# Solidity's built-in revert payloads
_ERROR_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)
_PANIC_SELECTOR = bytes.fromhex("4e487b71")  # Panic(uint256)


def _canonical_type(param: Mapping[str, Any]) -> str:
    """Collapse ``tuple`` params into eth_abi's ``(t1,t2)[]`` form."""
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _normalize(param: Mapping[str, Any], value: Any) -> Any:
    """Turn struct values given as mappings into positional tuples."""
    abi_type = param["type"]
    if abi_type.endswith("]"):
        element = {**param, "type": abi_type[: abi_type.rindex("[")]}
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise TypeError(f"expected a sequence for {abi_type}, got {type(value).__name__}")
        return [_normalize(element, v) for v in value]
    if abi_type == "tuple":
        components = param.get("components", [])
        if isinstance(value, Mapping):
            value = [value[c["name"]] for c in components]
        if len(value) != len(components):
            raise TypeError(f"struct expects {len(components)} fields, got {len(value)}")
        return tuple(_normalize(c, v) for c, v in zip(components, value))
    return value


def decode_revert_reason(data: bytes) -> str | None:
    """Best-effort decoding of revert data returned by a node."""
    if not data:
        return None
    selector, payload = data[:4], data[4:]
    try:
        if selector == _ERROR_SELECTOR:
            return decode(["string"], payload)[0]
        if selector == _PANIC_SELECTOR:
            return f"panic 0x{decode(['uint256'], payload)[0]:02x}"
    except DecodingError:
        pass
    return f"custom error 0x{data.hex()}"


@dataclass(frozen=True)
class AbiFunction:
    """One function entry of a contract ABI."""

    name: str
    inputs: list[dict] = field(default_factory=list)
    outputs: list[dict] = field(default_factory=list)
    state_mutability: str = "nonpayable"

    @property
    def input_types(self) -> list[str]:
        return [_canonical_type(p) for p in self.inputs]

    @property
    def output_types(self) -> list[str]:
        return [_canonical_type(p) for p in self.outputs]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    @property
    def payable(self) -> bool:
        return self.state_mutability == "payable"

    @property
    def read_only(self) -> bool:
        return self.state_mutability in ("view", "pure")


class ContractInterface:
    """Immutable view over a contract's JSON ABI.

    Safe to share across concurrent submissions: nothing is mutated after
    construction.
    """

    def __init__(self, abi: Sequence[Mapping[str, Any]]) -> None:
        if isinstance(abi, (str, bytes)) or not isinstance(abi, Sequence):
            raise ValueError("ABI must be a list of entries")
        functions: dict[str, list[AbiFunction]] = {}
        for entry in abi:
            if not isinstance(entry, Mapping):
                raise ValueError(f"malformed ABI entry: {entry!r}")
            if entry.get("type", "function") != "function":
                continue
            if "name" not in entry:
                raise ValueError(f"ABI function entry without a name: {entry!r}")
            fn = AbiFunction(
                name=entry["name"],
                inputs=list(entry.get("inputs", [])),
                outputs=list(entry.get("outputs", [])),
                state_mutability=entry.get("stateMutability", "nonpayable"),
            )
            functions.setdefault(fn.name, []).append(fn)
        self._functions = functions
        self._abi = list(abi)

    @classmethod
    def from_json(cls, text: str) -> ContractInterface:
        """Parse a bare ABI list or an artifact object with an ``abi`` key."""
        data = json.loads(text)
        if isinstance(data, Mapping):
            if "abi" not in data:
                raise ValueError("artifact has no 'abi' key")
            data = data["abi"]
        return cls(data)

    @classmethod
    def from_file(cls, path: str | Path) -> ContractInterface:
        p = Path(path).expanduser()
        log.debug("Loading contract interface from %s", p)
        return cls.from_json(p.read_text())

    @property
    def abi(self) -> list[dict]:
        return [dict(e) for e in self._abi]

    def function_names(self) -> list[str]:
        return sorted(self._functions)

    def function(self, name: str, arg_count: int | None = None) -> AbiFunction:
        """Look up a function, resolving overloads by argument count."""
        candidates = self._functions.get(name)
        if not candidates:
            raise InvalidFunctionError(f"function '{name}' not found in interface")
        if arg_count is None:
            return candidates[0]
        for fn in candidates:
            if len(fn.inputs) == arg_count:
                return fn
        expected = sorted({len(fn.inputs) for fn in candidates})
        raise ArgumentMismatchError(
            f"'{name}' takes {' or '.join(map(str, expected))} argument(s), got {arg_count}"
        )

    def encode_call(self, name: str, args: Sequence[Any] = ()) -> bytes:
        """Return selector + ABI-encoded arguments for ``name(args)``."""
        fn = self.function(name, len(args))
        try:
            values = [_normalize(p, a) for p, a in zip(fn.inputs, args)]
            return fn.selector + encode(fn.input_types, values)
        except (EncodingError, KeyError, TypeError, ValueError, OverflowError) as exc:
            raise ArgumentMismatchError(f"cannot encode arguments for {fn.signature}: {exc}") from exc

    def decode_output(self, name: str, data: bytes, arg_count: int | None = None) -> tuple:
        fn = self.function(name, arg_count)
        try:
            return tuple(decode(fn.output_types, data))
        except DecodingError as exc:
            raise QueryError(f"cannot decode return data of {fn.signature}: {exc}") from exc

"""ABI fragments of the analytics registry contract used by the client."""

from dataclasses import dataclass

from eth_utils import function_signature_to_4byte_selector


@dataclass(frozen=True)
class ContractFunction:
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)


REGISTRY_FUNCTIONS: dict[str, ContractFunction] = {
    fn.name: fn
    for fn in (
        ContractFunction("isAppRegistered", ("address",), ("bool",)),
        ContractFunction("isUserRegistered", ("address", "address"), ("bool",)),
        ContractFunction("addUser", ("string", "address")),
    )
}


def get_function(method: str) -> ContractFunction:
    try:
        return REGISTRY_FUNCTIONS[method]
    except KeyError:
        raise ValueError(f"Unknown registry method: {method}") from None

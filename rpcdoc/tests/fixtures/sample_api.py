"""Sample JSON-RPC services shared by the test suite."""
from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from rpcdoc.rpc.server import Context, RPCServer
from rpcdoc.rpc.types import Address, BlockNumberOrHash, HexBig


@dataclass
class NodeInfo:
    name: str
    port: int
    enode: str = ""


@dataclass
class PeerInfo:
    local: NodeInfo
    remote: NodeInfo
    inbound: bool = False


@dataclass
class TreeNode:
    value: int
    children: List[TreeNode] = field(default_factory=list)


@dataclass
class Account:
    address: Address
    balance: HexBig
    code: bytes


class PublicChainAPI:
    """Read access to chain state."""

    def __init__(self, head: int = 0x10) -> None:
        self._head = head

    def block_number(self) -> HexBig:
        """Returns the number of the most recent block."""
        return HexBig(self._head)

    def get_balance(
        self, ctx: Context, address: Address, block: BlockNumberOrHash
    ) -> Optional[HexBig]:
        """Returns the balance of an account at a given block.

        Args:
            address: Account to inspect.
            block: Block height or hash to read
                the state at.

        Returns:
            The balance in wei, or null when the state is unavailable.
        """
        if block.block_hash is not None:
            return None
        return HexBig(1000 + len(ctx.method))

    def get_tree(self, depth: int) -> TreeNode:
        """Returns a synthetic tree of the requested depth."""
        node = TreeNode(value=depth)
        if depth > 0:
            node.children.append(self.get_tree(depth - 1))
        return node

    async def syncing(self) -> bool:
        """Reports whether the node is catching up with the network."""
        return False

    @staticmethod
    def protocol_version() -> str:
        return "eth/68"

    @classmethod
    def chain_name(cls) -> str:
        return cls.__name__

    def _internal(self) -> None:
        raise AssertionError("never published")


class PrivateAdminAPI:
    def node_info(self) -> NodeInfo:
        """Returns private node information."""
        return NodeInfo(name="private", port=30303)

    def peers(self) -> List[PeerInfo]:
        """Lists connected peers."""
        node = NodeInfo(name="private", port=30303)
        return [PeerInfo(local=node, remote=NodeInfo(name="remote", port=30304))]


class PublicAdminAPI:
    def node_info(self) -> NodeInfo:
        """Returns public node information."""
        return NodeInfo(name="public", port=30303, enode="enode://public")


@dataclass(slots=True)
class CallContext(Context):
    caller: str = "anonymous"


class BaseStore:
    def read(self, key: str) -> str:
        """Reads a key from the base store."""
        return key

    def keys(self) -> List[str]:
        """Lists the stored keys."""
        return []


class OverlayStore(BaseStore):
    def read(self, ctx: CallContext, name: str, default: str = "") -> str:
        """Reads a key through the overlay.

        Args:
            name: Key to read.
            default: Returned when the key is unknown.
        """
        return f"{type(ctx).__name__}:{ctx.metadata.get('scope_id', '')}:{name}"


def foo_bar(value: int) -> str:
    """Echoes the value as text."""
    return str(value)


def notify(message: str):
    """Accepts a message and returns nothing."""


def store(key: str, _: int) -> bool:
    """Stores an anonymous value."""
    return bool(key)


def variadic(*values: int) -> int:
    """Sums its arguments."""
    return sum(values)


def apply(callback: Callable[[int], int]) -> int:
    """Calls back into the client."""
    return callback(1)


def failing() -> ValueError:
    """Only ever signals an error."""
    return ValueError("failing")


def legacy_balance(address: Address) -> HexBig:
    """Use chain_get_balance instead."""
    return HexBig(0)


legacy_balance.__deprecated__ = "use chain_get_balance"


def _with_extra_argument(fn):
    @functools.wraps(fn)
    def wrapper(*args):
        return fn(*args[:1])

    wrapper.__signature__ = inspect.Signature(
        [
            inspect.Parameter("value", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=int),
            inspect.Parameter("extra", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=int),
        ],
        return_annotation=int,
    )
    return wrapper


@_with_extra_argument
def mismatched(value: int) -> int:
    """Declared with a single parameter."""
    return value


def build_server() -> RPCServer:
    server = RPCServer(title="Sample chain API", version="2.1.0+build7")
    server.register_name("chain", PublicChainAPI())
    server.register_name("admin", PrivateAdminAPI())
    server.register_name("public", PublicAdminAPI())
    server.register_function("foo_bar", foo_bar)
    server.register_function("notify", notify)
    return server

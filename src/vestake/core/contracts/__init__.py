"""
Token contract primitives.

- ERC20: Fungible token used for base and reward tokens
- VoteToken: Non-transferable voting power token minted by staking
- WrappedNativeToken: ERC20 backed 1:1 by native currency
"""

from .erc20 import ERC20Token, TokenEvent, derive_address, unique_address
from .vote_token import VoteToken
from .wrapped_native import WrappedNativeToken

__all__ = [
    "ERC20Token",
    "TokenEvent",
    "VoteToken",
    "WrappedNativeToken",
    "derive_address",
    "unique_address",
]

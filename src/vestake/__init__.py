"""
vestake - Voting-Escrow Staking Engine

Integer-exact staking engine for locked base tokens with time-weighted
voting power and multi-stream reward distribution.

Main Components:
- Staking: Lock ledger, weight formulas, penalties and reward accrual
- Vault: Multi-token custody shared by staking instances
- Factory: Named staking templates and instance deployment
- Contracts: ERC20, voting token and wrapped native token primitives
"""

__version__ = "0.1.0"
__author__ = "vestake Development Team"

__all__ = []

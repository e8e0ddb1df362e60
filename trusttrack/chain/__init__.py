"""
Chain access - capability interface and web3.py implementation.
"""

# Package initialization for chain module
from .client import (
    ChainClient,
    ContractCall,
    Receipt,
    build_add_stage_call,
    build_get_stage_ids_call,
    build_get_stage_data_call,
    build_get_stage_meta_call,
)
from .abi import CONTRACT_ABI

__all__ = [
    'ChainClient',
    'ContractCall',
    'Receipt',
    'build_add_stage_call',
    'build_get_stage_ids_call',
    'build_get_stage_data_call',
    'build_get_stage_meta_call',
    'CONTRACT_ABI'
]

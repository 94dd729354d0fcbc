"""
Network Switch Protocol

Add-or-switch sequencing (EIP-3326 switch, EIP-3085 add) against a signing
provider. Retries at most once, and only when the provider reports that it
does not recognise the target chain and the registry can describe it.
"""

import logging
from typing import Mapping, Optional

from ..chains import CHAIN_REGISTRY, ChainDescriptor, get_chain, normalize_chain_id
from ..errors import NetworkSwitchError
from ...providers.base import ProviderRpcError, WalletProvider


logger = logging.getLogger(__name__)


async def switch_or_add_chain(
    provider: WalletProvider,
    chain_id: str,
    registry: Mapping[str, ChainDescriptor] = CHAIN_REGISTRY,
) -> Optional[ChainDescriptor]:
    """
    Switch the provider to ``chain_id``, adding it first if the provider does not know it.

    Args:
        provider: Signing provider to drive
        chain_id: Target chain id (hex, decimal string or int)
        registry: Descriptors available for ``wallet_addEthereumChain``

    Returns:
        The registry descriptor for the target, or ``None`` for chains the
        provider already knew but the registry does not describe.

    Raises:
        NetworkSwitchError: The switch failed for any reason other than an
            unrecognised chain, the add failed, or the retried switch failed.
    """
    try:
        target = normalize_chain_id(chain_id)
    except ValueError as e:
        raise NetworkSwitchError(str(e)) from e

    descriptor = get_chain(target, registry)

    try:
        await provider.switch_chain(target)
        return descriptor
    except ProviderRpcError as e:
        if not (e.is_unrecognized_chain and descriptor):
            raise NetworkSwitchError(e.message, provider_code=e.code) from e
        logger.info("Chain %s unknown to provider, adding %s", target, descriptor.chain_name)

    try:
        await provider.add_chain(descriptor)
        await provider.switch_chain(target)
    except ProviderRpcError as e:
        raise NetworkSwitchError(e.message, provider_code=e.code) from e

    return descriptor

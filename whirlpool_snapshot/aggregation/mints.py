"""
Mint metadata fetching.
"""

import logging
from typing import Any

from ..accounts.decoders import decode_mint
from ..accounts.facades import MintData
from ..batchers.base import AccountReader, to_pubkey
from ..batchers.errors import MissingAccountError, TransportError


class MintDataFetcher:
    """Fetches and decodes SPL-Token mint accounts one at a time."""

    stage = "mints"

    def __init__(self, reader: AccountReader):
        self.reader = reader
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def fetch(self, address: Any) -> MintData:
        """
        Fetch mint metadata.

        Args:
            address: Mint address

        Returns:
            Decoded MintData

        Raises:
            MissingAccountError: If no account exists at the address
            DecodeError: If the account is not a mint
            TransportError: If the read fails
        """
        mint = to_pubkey(address)
        self.logger.debug(f"Fetching mint {mint}")
        try:
            data = self.reader.read_one(mint)
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to fetch mint {mint}: {e}", stage=self.stage) from e

        if data is None:
            raise MissingAccountError(
                f"Mint account {mint} does not exist", stage=self.stage, address=str(mint)
            )
        mint_data = decode_mint(mint, data)
        self.logger.debug(f"Mint {mint}: {mint_data.decimals} decimals, supply {mint_data.supply}")
        return mint_data

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from web3 import Web3


@dataclass(frozen=True, slots=True)
class ContractDescriptor:
    """Deployed contract address plus its ABI.

    Attributes:
        address: Checksummed contract address
        abi: Interface description of the contract
    """

    address: str
    abi: list[dict[str, Any]]

    @classmethod
    def from_artifact(
        cls,
        artifact_path: Path,
        network_id: str,
        address_override: str | None = None
    ) -> "ContractDescriptor":
        """Reads a Truffle build artifact and resolves the deployed address.

        Args:
            artifact_path: Path to the contract's JSON build artifact
            network_id: Network key under ``networks`` (e.g. Ganache's 5777)
            address_override: Address to use instead of the artifact's one

        Returns:
            ContractDescriptor for the deployment

        Raises:
            FileNotFoundError: If the artifact doesn't exist
            json.JSONDecodeError: If the artifact is invalid JSON
            ValueError: If the ABI or the network's address is missing
        """
        with Path(artifact_path).open() as file:
            artifact: dict[str, Any] = json.load(file)

        abi = artifact.get("abi")
        if not isinstance(abi, list):
            raise ValueError(f"No ABI found in {artifact_path}")

        if address_override:
            address = address_override
        else:
            network: dict[str, Any] = artifact.get("networks", {}).get(str(network_id), {})
            if not (address := network.get("address")):
                raise ValueError(
                    f"Contract is not deployed on network {network_id} "
                    f"according to {artifact_path}"
                )

        if not Web3.is_address(address):
            raise ValueError(f"Invalid contract address in descriptor: {address}")

        return cls(address=Web3.to_checksum_address(address), abi=abi)

    def input_types(self, function_name: str) -> list[str]:
        """Returns the ABI input types of the named function.

        Raises:
            ValueError: If the ABI has no function with that name
        """
        for entry in self.abi:
            if entry.get("type") == "function" and entry.get("name") == function_name:
                return [param["type"] for param in entry.get("inputs", [])]
        raise ValueError(f"Function {function_name} not found in contract ABI")

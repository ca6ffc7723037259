from enum import Enum


class Network(Enum):
    MAINNET = ("mainnet", "https://graphql.mainnet.sui.io/graphql")
    TESTNET = ("testnet", "https://graphql.testnet.sui.io/graphql")

    def __init__(self, network_name: str, graphql_url: str):
        self.network_name = network_name
        self.graphql_url = graphql_url

    @classmethod
    def from_name(cls, name: str) -> "Network":
        name = name.lower()
        for network in cls:
            if network.network_name == name:
                return network
        raise ValueError(f"Unknown network name: {name}")

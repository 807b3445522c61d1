"""Cloud provider integrations for Autoneg Controller."""

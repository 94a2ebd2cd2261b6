"""Domain Layer: value objects, envelopes and the ports the core depends on."""

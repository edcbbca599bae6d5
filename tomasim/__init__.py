"""Cycle-level out-of-order RV32I simulator based on Tomasulo's algorithm."""

__version__ = "0.1.0"
__all__ = [
    "alu",
    "cdb",
    "cpu",
    "decoder",
    "entry",
    "icache",
    "lsb",
    "memory",
    "pipeline",
    "predictor",
    "registers",
    "reservation",
]
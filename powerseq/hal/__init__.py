"""Power sequencing capability interface with generated pre/post hooks."""
from powerseq.hal.errors import Error, ErrorKind, error_kind
from powerseq.hal.markers import hook_names, power_sequence, power_state
from powerseq.hal.sequence import OPERATIONS, PowerSequence
from powerseq.hal.forward import ForwardingPowerSequence, by_ref

__all__ = [
    "OPERATIONS",
    "Error",
    "ErrorKind",
    "ForwardingPowerSequence",
    "PowerSequence",
    "by_ref",
    "error_kind",
    "hook_names",
    "power_sequence",
    "power_state",
]

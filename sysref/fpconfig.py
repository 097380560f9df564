"""Framework-wide configuration: type widths, limits and buffer sizes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class TimeBase(IntEnum):
    """Time bases a time value can be expressed in."""

    NONE = 0
    PROC_TIME = 1
    WORKSTATION_TIME = 2
    DONT_CARE = 0xFFFF


FW_CONTEXT_DONT_CARE = 0xFF

FW_SERIALIZE_TRUE_VALUE = 0xFF
FW_SERIALIZE_FALSE_VALUE = 0x00

FW_OBJECT_NAMES = True
FW_OBJECT_TO_STRING = True
FW_OBJECT_REGISTRATION = True
FW_QUEUE_REGISTRATION = True
FW_BAREMETAL_SCHEDULER = False
FW_PORT_TRACING = True
FW_PORT_SERIALIZATION = True
FW_SERIALIZATION_TYPE_ID = False

FW_NO_ASSERT = 1
FW_FILEID_ASSERT = 2
FW_FILENAME_ASSERT = 3
FW_ASSERT_DFL_MSG_LEN = 256
FW_ASSERT_LEVEL = FW_FILENAME_ASSERT
FW_ASSERT_TEXT_SIZE = 120

FW_OBJ_NAME_MAX_SIZE = 80
FW_OBJ_TO_STRING_BUFFER_SIZE = 255
FW_OBJ_SIMPLE_REG_ENTRIES = 500
FW_OBJ_SIMPLE_REG_BUFF_SIZE = 255
FW_QUEUE_SIMPLE_QUEUE_ENTRIES = 100
FW_QUEUE_NAME_MAX_SIZE = 80
FW_TASK_NAME_MAX_SIZE = 80

FW_COM_BUFFER_MAX_SIZE = 128
FW_CMD_STRING_MAX_SIZE = 40
FW_CMD_CHECK_RESIDUAL = True
FW_LOG_STRING_MAX_SIZE = 100
FW_TLM_STRING_MAX_SIZE = 40
FW_PARAM_STRING_MAX_SIZE = 40
FW_FILE_BUFFER_MAX_SIZE = 255
FW_INTERNAL_INTERFACE_STRING_MAX_SIZE = 256
FW_ENABLE_TEXT_LOGGING = True
FW_LOG_TEXT_BUFFER_SIZE = 256
FW_SERIALIZABLE_TO_STRING = True
FW_SERIALIZABLE_TO_STRING_BUFFER_SIZE = 255
FW_ARRAY_TO_STRING = True
FW_ARRAY_TO_STRING_BUFFER_SIZE = 256
FW_AMPCS_COMPATIBLE = False
FW_USE_TIME_BASE = True
FW_USE_TIME_CONTEXT = True
FW_FIXED_LENGTH_STRING_SIZE = 256


@dataclass(frozen=True)
class _IntType:
    size: int
    signed: bool

    @property
    def limits(self) -> tuple[int, int]:
        bits = self.size * 8
        if self.signed:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1


_U8 = _IntType(1, False)
_U16 = _IntType(2, False)
_U32 = _IntType(4, False)
_I32 = _IntType(4, True)

_TYPES: dict[str, _IntType] = {
    "U8": _U8,
    "U16": _U16,
    "U32": _U32,
    "I32": _I32,
    "FwBuffSizeType": _U16,
    "FwEnumStoreType": _I32,
    "FwTimeBaseStoreType": _U16,
    "FwTimeContextStoreType": _U8,
    "FwPacketDescriptorType": _U32,
    "FwOpcodeType": _U32,
    "FwChanIdType": _U32,
    "FwEventIdType": _U32,
    "FwPrmIdType": _U32,
    "FwTlmPacketizeIdType": _U16,
}

TYPE_SIZES: dict[str, int] = {name: t.size for name, t in _TYPES.items()}


def type_limits(type_name: str) -> tuple[int, int]:
    """Return the (minimum, maximum) values of a configured integer type."""
    try:
        return _TYPES[type_name].limits
    except KeyError:
        raise ValueError(f"unknown type: {type_name!r}") from None


_DESCRIPTOR = TYPE_SIZES["FwPacketDescriptorType"]

_BUFFER_SIZES: dict[str, int] = {
    "com": FW_COM_BUFFER_MAX_SIZE,
    "cmd": FW_COM_BUFFER_MAX_SIZE - TYPE_SIZES["FwOpcodeType"] - _DESCRIPTOR,
    "log": FW_COM_BUFFER_MAX_SIZE - TYPE_SIZES["FwEventIdType"] - _DESCRIPTOR,
    "tlm": FW_COM_BUFFER_MAX_SIZE - TYPE_SIZES["FwChanIdType"] - _DESCRIPTOR,
    "param": FW_COM_BUFFER_MAX_SIZE - TYPE_SIZES["FwPrmIdType"] - _DESCRIPTOR,
    "file": FW_FILE_BUFFER_MAX_SIZE,
}


def buffer_max_size(kind: str) -> int:
    """Return the maximum size in bytes of a buffer of the given kind.

    Kinds are ``com``, ``cmd``, ``log``, ``tlm``, ``param`` and ``file``.
    """
    try:
        return _BUFFER_SIZES[kind]
    except KeyError:
        raise ValueError(f"unknown buffer kind: {kind!r}") from None
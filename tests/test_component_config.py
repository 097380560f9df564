import dataclasses

import pytest

from sysref.component_config import (
    TLMCHAN_HASH_MOD_VALUE,
    TLMCHAN_NUM_TLM_HASH_SLOTS,
    EventFilterDefaults,
    IpConfig,
    SocketIpConfig,
    tlm_hash_slot,
)
from sysref.fpconfig import type_limits


@pytest.mark.parametrize("channel_id", [0, 1, 7, 14])
def test_small_ids_map_to_their_own_slot(channel_id):
    assert tlm_hash_slot(channel_id) == channel_id


@pytest.mark.parametrize("channel_id", [0, 50, 98, 99, 1000, 123456])
def test_slot_is_within_table(channel_id):
    assert 0 <= tlm_hash_slot(channel_id) < TLMCHAN_NUM_TLM_HASH_SLOTS


@pytest.mark.parametrize("channel_id", [3, 40, 512])
def test_ids_one_modulus_apart_share_slot(channel_id):
    assert tlm_hash_slot(channel_id) == tlm_hash_slot(channel_id + TLMCHAN_HASH_MOD_VALUE)


def test_largest_channel_id_accepted():
    _, high = type_limits("FwChanIdType")
    assert 0 <= tlm_hash_slot(high) < TLMCHAN_NUM_TLM_HASH_SLOTS


@pytest.mark.parametrize("channel_id", [-1, 1 << 32])
def test_out_of_range_channel_id_rejected(channel_id):
    with pytest.raises(ValueError):
        tlm_hash_slot(channel_id)


def test_event_filters_only_diagnostic_passes_by_default():
    defaults = EventFilterDefaults()
    filtered = {f.name for f in dataclasses.fields(defaults) if getattr(defaults, f.name)}
    assert filtered == {"warning_hi", "warning_lo", "command", "activity_hi", "activity_lo"}


def test_event_filters_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        EventFilterDefaults().diagnostic = True


def test_ip_config_override_keeps_other_defaults():
    base = IpConfig()
    changed = dataclasses.replace(base, retry_interval_ms=250)
    assert changed.retry_interval_ms == 250
    assert changed.max_iterations == base.max_iterations
    assert base.retry_interval_ms == 1000


def test_ip_config_rejects_negative_values():
    with pytest.raises(ValueError):
        IpConfig(send_timeout_seconds=-1)


def test_socket_config_keepalive_and_rejects_negative():
    assert SocketIpConfig().keepalive_data == "sitting well"
    with pytest.raises(ValueError):
        SocketIpConfig(max_recv_buffer_size=-5)
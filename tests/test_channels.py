import pytest

from aacenc.channels import ChannelInfo, MSInfo, get_channel_info


def _kinds(infos):
    result = []
    for info in infos:
        if info.cpe:
            result.append("cpe")
        elif info.lfe:
            result.append("lfe")
        else:
            result.append("sce")
    return result


def test_mono_is_single_sce():
    infos = get_channel_info(1, True)
    assert _kinds(infos) == ["sce"]
    assert infos[0].tag == 0


def test_stereo_is_one_pair():
    infos = get_channel_info(2, True)
    assert _kinds(infos) == ["cpe", "cpe"]
    assert infos[0].ch_is_left and not infos[1].ch_is_left
    assert infos[0].paired_ch == 1
    assert infos[1].paired_ch == 0


def test_three_channels():
    assert _kinds(get_channel_info(3, True)) == ["sce", "cpe", "cpe"]


def test_four_channels_with_lfe():
    assert _kinds(get_channel_info(4, True)) == ["sce", "cpe", "cpe", "lfe"]


def test_four_channels_without_lfe():
    infos = get_channel_info(4, False)
    assert _kinds(infos) == ["sce", "cpe", "cpe", "sce"]
    assert [infos[0].tag, infos[3].tag] == [0, 1]


def test_five_channels():
    assert _kinds(get_channel_info(5, True)) == ["sce", "cpe", "cpe", "cpe", "cpe"]


def test_six_channels_with_lfe():
    infos = get_channel_info(6, True)
    assert _kinds(infos) == ["sce", "cpe", "cpe", "cpe", "cpe", "lfe"]
    assert [infos[1].tag, infos[3].tag] == [0, 1]
    assert infos[5].tag == 0


@pytest.mark.parametrize("count", range(1, 9))
@pytest.mark.parametrize("use_lfe", [True, False])
def test_pairing_is_symmetric(count, use_lfe):
    infos = get_channel_info(count, use_lfe)
    assert len(infos) == count
    assert all(info.present for info in infos)
    for index, info in enumerate(infos):
        if info.cpe:
            partner = infos[info.paired_ch]
            assert partner.cpe
            assert partner.paired_ch == index
            assert partner.ch_is_left != info.ch_is_left


@pytest.mark.parametrize("count", [0, -1])
def test_no_channels_rejected(count):
    with pytest.raises(ValueError):
        get_channel_info(count, True)


def test_defaults_have_no_ms():
    info = ChannelInfo()
    assert info.ms_info == MSInfo(is_present=0, ms_used=[])
    assert get_channel_info(2, False)[0].ms_info.is_present == 0
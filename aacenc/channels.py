"""Assignment of input channels to AAC syntactic elements."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class MSInfo:
    """Mid/side stereo decision for a channel pair."""

    is_present: int = 0
    ms_used: list[int] = field(default_factory=list)


@dataclass
class ChannelInfo:
    """How one input channel is carried in the bitstream."""

    tag: int = 0
    present: bool = False
    ch_is_left: bool = False
    paired_ch: int = 0
    common_window: bool = False
    cpe: bool = False
    sce: bool = False
    lfe: bool = False
    ms_info: MSInfo = field(default_factory=MSInfo)


def get_channel_info(num_channels: int, use_lfe: bool) -> list[ChannelInfo]:
    """Lay out ``num_channels`` channels as SCE, CPE and LFE elements.

    The first channel is a single channel element unless there are exactly
    two channels; the following channels form channel pairs; a remaining
    odd channel becomes an LFE element when ``use_lfe`` is set, otherwise
    another single channel element.
    """
    if num_channels < 1:
        raise ValueError("at least one channel is required")

    infos: list[ChannelInfo] = []
    sce_tag = 0
    cpe_tag = 0
    lfe_tag = 0
    left = num_channels

    if left != 2:
        infos.append(ChannelInfo(tag=sce_tag, present=True, sce=True))
        sce_tag += 1
        left -= 1

    while left > 1:
        index = len(infos)
        infos.append(
            ChannelInfo(
                tag=cpe_tag,
                present=True,
                cpe=True,
                ch_is_left=True,
                paired_ch=index + 1,
            )
        )
        infos.append(
            ChannelInfo(
                tag=cpe_tag,
                present=True,
                cpe=True,
                ch_is_left=False,
                paired_ch=index,
            )
        )
        cpe_tag += 1
        left -= 2

    if left:
        if use_lfe:
            infos.append(ChannelInfo(tag=lfe_tag, present=True, lfe=True))
            lfe_tag += 1
        else:
            infos.append(ChannelInfo(tag=sce_tag, present=True, sce=True))
            sce_tag += 1

    return infos
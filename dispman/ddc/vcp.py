from __future__ import annotations
import enum
from dataclasses import dataclass

from ..errors import FeatureNotSupportedError


@enum.unique
class VcpFeature(enum.Enum):
    """Well-known VCP feature codes."""

    BRIGHTNESS = 0x10
    CONTRAST = 0x12
    INPUT_SOURCE = 0x60
    VOLUME = 0x62
    POWER_MODE = 0xD6

    @property
    def code(self) -> int:
        return self.value

    @property
    def label(self) -> str:
        return _FEATURE_LABELS[self]

    def __str__(self) -> str:
        return f"{self.label} (0x{self.code:02X})"


_FEATURE_LABELS = {
    VcpFeature.BRIGHTNESS: "Brightness",
    VcpFeature.CONTRAST: "Contrast",
    VcpFeature.INPUT_SOURCE: "Input Source",
    VcpFeature.VOLUME: "Volume",
    VcpFeature.POWER_MODE: "Power Mode",
}


@dataclass(frozen=True)
class CustomFeature:
    """A VCP code outside the well-known set."""

    code: int
    label: str = "Custom"

    def __str__(self) -> str:
        return f"{self.label} (0x{self.code:02X})"


@enum.unique
class InputSource(enum.Enum):
    """Values of the Input Source (0x60) feature."""

    ANALOG1 = 0x01
    ANALOG2 = 0x02
    DIGITAL1 = 0x03
    DIGITAL2 = 0x04
    COMPOSITE1 = 0x05
    COMPOSITE2 = 0x06
    SVIDEO1 = 0x07
    SVIDEO2 = 0x08
    TUNER1 = 0x09
    TUNER2 = 0x0A
    TUNER3 = 0x0B
    COMPONENT1 = 0x0C
    COMPONENT2 = 0x0D
    COMPONENT3 = 0x0E
    DISPLAYPORT1 = 0x0F
    DISPLAYPORT2 = 0x10
    HDMI1 = 0x11
    HDMI2 = 0x12
    # Placeholder: most monitors report USB-C as one of the DP or HDMI values.
    USBC = 0x13

    @property
    def label(self) -> str:
        return _INPUT_LABELS[self]

    def __str__(self) -> str:
        return self.label


_INPUT_LABELS = {
    InputSource.ANALOG1: "Analog1",
    InputSource.ANALOG2: "Analog2",
    InputSource.DIGITAL1: "Digital1",
    InputSource.DIGITAL2: "Digital2",
    InputSource.COMPOSITE1: "Composite1",
    InputSource.COMPOSITE2: "Composite2",
    InputSource.SVIDEO1: "SVideo1",
    InputSource.SVIDEO2: "SVideo2",
    InputSource.TUNER1: "Tuner1",
    InputSource.TUNER2: "Tuner2",
    InputSource.TUNER3: "Tuner3",
    InputSource.COMPONENT1: "Component1",
    InputSource.COMPONENT2: "Component2",
    InputSource.COMPONENT3: "Component3",
    InputSource.DISPLAYPORT1: "DisplayPort1",
    InputSource.DISPLAYPORT2: "DisplayPort2",
    InputSource.HDMI1: "Hdmi1",
    InputSource.HDMI2: "Hdmi2",
    InputSource.USBC: "UsbC",
}


@dataclass(frozen=True)
class UnrecognizedInput:
    """An Input Source value outside the known set."""

    value: int

    @property
    def label(self) -> str:
        return f"Unknown(0x{self.value:02X})"

    def __str__(self) -> str:
        return self.label


_FEATURES_BY_CODE = {feature.code: feature for feature in VcpFeature}
_INPUTS_BY_VALUE = {source.value: source for source in InputSource}


def code_to_feature(code: int) -> VcpFeature | CustomFeature:
    feature = _FEATURES_BY_CODE.get(code)
    if feature is None:
        return CustomFeature(code)
    return feature


def value_to_input_source(value: int) -> InputSource | UnrecognizedInput:
    source = _INPUTS_BY_VALUE.get(value)
    if source is None:
        return UnrecognizedInput(value)
    return source


_FEATURE_ALIASES = {
    "brightness": VcpFeature.BRIGHTNESS,
    "contrast": VcpFeature.CONTRAST,
    "volume": VcpFeature.VOLUME,
    "input": VcpFeature.INPUT_SOURCE,
    "power": VcpFeature.POWER_MODE,
}


def feature_from_name(text: str) -> int:
    """Resolve a feature name, ``0x`` hex code or decimal code to a VCP byte.

    Raises FeatureNotSupportedError for anything that is not a known name or
    a number in the 0-255 range.
    """
    name = text.strip().lower()
    if name in _FEATURE_ALIASES:
        return _FEATURE_ALIASES[name].code
    try:
        if "_" in name:
            raise ValueError(name)
        if name.startswith("0x"):
            code = int(name[2:], 16)
        else:
            code = int(name, 10)
    except ValueError:
        if name.startswith("0x"):
            raise FeatureNotSupportedError(f"Invalid hex code: {text}") from None
        raise FeatureNotSupportedError(f"Unknown feature: {text}") from None
    if not 0 <= code <= 0xFF:
        raise FeatureNotSupportedError(f"VCP code out of range: {text}")
    return code

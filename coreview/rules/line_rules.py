"""Rules evaluated against one post-change line at a time."""

from __future__ import annotations

from re import Pattern, compile
from typing import ClassVar

from coreview.rules.base import LineRule, quote

SYSTEM_FRAMEWORKS = (
    "Accelerate", "Accounts", "AddressBook", "AddressBookUI", "AdSupport", "Appsee",
    "AssetsLibrary", "AudioToolbox", "AudioUnit", "AVFoundation", "AVKit", "CFNetwork",
    "CloudKit", "CoreAudio", "CoreBluetooth", "CoreData", "CoreFoundation", "CoreGraphics",
    "CoreImage", "CoreLocation", "CoreMedia", "CoreMIDI", "CoreMotion", "CoreTelephony",
    "CoreText", "CoreVideo", "Darwin", "Dispatch", "EventKit", "EventKitUI",
    "ExternalAccessory", "Foundation", "GameController", "GameKit", "GLKit", "GSS",
    "HealthKit", "HomeKit", "iAd", "ImageIO", "JavaScriptCore", "LocalAuthentication",
    "MachO", "MapKit", "MediaAccessibility", "MediaPlayer", "MediaToolbox", "MessageUI",
    "Metal", "MobileCoreServices", "MultipeerConnectivity", "NetworkExtension",
    "NewsstandKit", "NotificationCenter", "ObjectiveC", "OpenAL", "OpenGLES", "PassKit",
    "Photos", "PhotosUI", "PushKit", "QuartzCore", "QuickLook", "SafariServices",
    "SceneKit", "Security", "Social", "SpriteKit", "StoreKit", "SystemConfiguration",
    "Twitter", "UIKit", "VideoToolbox", "WatchKit", "WebKit",
)  # fmt: skip

DEFAULT_MAX_LINE_LENGTH = 160


class _PatternLineRule(LineRule):
    pattern: ClassVar[Pattern[str]]
    question: ClassVar[str]

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def describe(self, text: str) -> str:
        return f"{quote(text)}, {self.question}"


class ModuleImportRule(_PatternLineRule):
    """System frameworks imported with #import instead of @import."""

    rule_id = "module_import"
    pattern = compile(r"#import <(?:" + "|".join(SYSTEM_FRAMEWORKS) + ")")
    question = "@import?"


class DotNotationRule(_PatternLineRule):
    """Bracketed property access that could use dot notation."""

    rule_id = "dot_notation"
    pattern = compile(r"[\w|\]] \w+\]")
    question = "Dot notation?"


class UIColorListRule(_PatternLineRule):
    """Ad-hoc UIColor usage outside the shared palette."""

    rule_id = "uicolor_list"
    pattern = compile(r"UIColor")
    question = "is there a colour defined for this?"

    def matches(self, text: str) -> bool:
        return super().matches(text) and "pbx_" not in text and "clearColor" not in text


class CommentRule(_PatternLineRule):
    """Line comments left at the start of an added line."""

    rule_id = "comment"
    pattern = compile(r"^//")
    question = "did you mean to leave this comment?"


class InferredBlockReturnRule(_PatternLineRule):
    """Block literals with an explicit return type."""

    rule_id = "inferred_block_return"
    pattern = compile(r"\^\w+\(")
    question = "can this return type be inferred?"


class SpaceBeforeSemicolonRule(_PatternLineRule):
    """Whitespace before a semicolon."""

    rule_id = "space_before_semicolon"
    pattern = compile(r"\s;")
    question = "extra space?"


class ExtraSpaceRule(_PatternLineRule):
    """Runs of inner spaces that are not assignment alignment."""

    rule_id = "extra_space"
    pattern = compile(r"\S\s\s+\S")
    alignment_pattern = compile(r"\s\s=")
    question = "extra spacing?"

    def matches(self, text: str) -> bool:
        if text.startswith("@property"):
            return False
        return len(self.pattern.findall(text)) > len(self.alignment_pattern.findall(text))


class BoolGetterRule(_PatternLineRule):
    """BOOL properties declared without an is-style getter."""

    rule_id = "bool_getter"
    pattern = compile(r"^@property.*BOOL")
    question = "needs a getter set?"

    def matches(self, text: str) -> bool:
        return super().matches(text) and "getter" not in text


class ConstantFirstRule(_PatternLineRule):
    """Equality checks with the constant on the right-hand side."""

    rule_id = "constant_first"
    pattern = compile(r" == ([0-9]+|[A-Z]{3})")
    question = "Constant first?"


class LineLengthRule(LineRule):
    """Implementation lines longer than the configured limit."""

    rule_id = "line_length"
    extensions = frozenset({"m"})

    def __init__(self, max_length: int = DEFAULT_MAX_LINE_LENGTH) -> None:
        self.max_length = max_length

    def matches(self, text: str) -> bool:
        return len(text.rstrip("\r\n")) > self.max_length

    def describe(self, text: str) -> str:
        return f"{quote(text)}, does this need shortening?"


class CastToIdRule(_PatternLineRule):
    """Messages sent through an empty cast."""

    rule_id = "cast_to_id"
    pattern = compile(r"\(\)\w+\]")
    question = "Dot notation?"


class FirstObjectRule(_PatternLineRule):
    """Zero subscripts that could use firstObject."""

    rule_id = "first_object"
    pattern = compile(r"\[0\]")
    question = "firstObject?"


class WeakSelfBlockRule(_PatternLineRule):
    """Block properties invoked through weakSelf."""

    rule_id = "weak_self_block"
    pattern = compile(r"weakSelf\.\S*\(.*\)")
    question = "using weakSelf with a block?"


class CopyPropertyRule(_PatternLineRule):
    """NSString and block properties declared without copy."""

    rule_id = "copy_property"
    pattern = compile(r"^@property.*(?:NSString|\^)")
    question = "should you be using copy?"

    def matches(self, text: str) -> bool:
        return super().matches(text) and "copy" not in text

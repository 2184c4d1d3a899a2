"""Fixed presentation vocabularies the model must draw from."""
from enum import Enum
from typing import Dict


class FacialExpression(str, Enum):
    """Facial expressions a renderer knows how to pose."""
    NEUTRAL = "Neutral"
    HAPPY = "Happy"
    SAD = "Sad"
    ANGRY = "Angry"
    SURPRISED = "Surprised"
    DISGUSTED = "Disgusted"
    FEARFUL = "Fearful"
    CONFUSED = "Confused"
    EXCITED = "Excited"
    BORED = "Bored"
    THOUGHTFUL = "Thoughtful"
    EMBARRASSED = "Embarrassed"
    PROUD = "Proud"
    SHY = "Shy"
    SKEPTICAL = "Skeptical"
    AMUSED = "Amused"
    WORRIED = "Worried"
    RELIEVED = "Relieved"
    DETERMINED = "Determined"
    SLEEPY = "Sleepy"


class Animation(str, Enum):
    """Animation clips available to the avatar."""
    STANDING_IDLE = "M_Standing_Idle_001"
    STANDING_IDLE_VARIATION = "M_Standing_Idle_Variations_002"
    TALKING_HANDS = "M_Talking_Variations_001"
    TALKING_EXPLAINING = "M_Talking_Variations_005"
    TALKING_EXCITED = "M_Talking_Variations_007"
    TALKING_CALM = "M_Talking_Variations_009"
    EXPRESSION_GREETING = "M_Standing_Expressions_001"
    EXPRESSION_AGREE = "M_Standing_Expressions_004"
    EXPRESSION_DISAGREE = "M_Standing_Expressions_005"
    EXPRESSION_THINKING = "M_Standing_Expressions_007"
    EXPRESSION_SHRUG = "M_Standing_Expressions_011"
    EXPRESSION_CELEBRATE = "M_Standing_Expressions_013"
    EXPRESSION_SAD = "M_Standing_Expressions_016"
    DANCE = "M_Dances_001"


ANIMATION_HINTS: Dict[Animation, str] = {
    Animation.STANDING_IDLE: "standing still, relaxed",
    Animation.STANDING_IDLE_VARIATION: "standing, shifting weight",
    Animation.TALKING_HANDS: "talking with hands",
    Animation.TALKING_EXPLAINING: "explaining something step by step",
    Animation.TALKING_EXCITED: "talking energetically",
    Animation.TALKING_CALM: "talking calmly, small gestures",
    Animation.EXPRESSION_GREETING: "waving hello",
    Animation.EXPRESSION_AGREE: "nodding in agreement",
    Animation.EXPRESSION_DISAGREE: "shaking head",
    Animation.EXPRESSION_THINKING: "hand on chin, thinking",
    Animation.EXPRESSION_SHRUG: "shrugging, not sure",
    Animation.EXPRESSION_CELEBRATE: "celebrating, arms up",
    Animation.EXPRESSION_SAD: "head down, disappointed",
    Animation.DANCE: "dancing",
}

NEUTRAL_EXPRESSION = FacialExpression.NEUTRAL
NEUTRAL_ANIMATION = Animation.STANDING_IDLE


def is_known_expression(value: str) -> bool:
    return value in FacialExpression._value2member_map_


def is_known_animation(value: str) -> bool:
    return value in Animation._value2member_map_

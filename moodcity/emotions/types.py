"""
moodcity/emotions/types.py

Closed vocabularies shared by every subsystem. Anything that names an
emotion, mood, weather or chamber kind goes through one of these enums,
so a typo fails loudly at the boundary instead of silently doing nothing.
"""

from enum import Enum


class Emotion(str, Enum):
    # Plutchik's eight primaries. Declaration order is the tie-break order
    # wherever a "dominant emotion" is picked.
    JOY = "joy"
    SADNESS = "sadness"
    TRUST = "trust"
    DISGUST = "disgust"
    FEAR = "fear"
    ANGER = "anger"
    SURPRISE = "surprise"
    ANTICIPATION = "anticipation"


EMOTIONS: tuple[Emotion, ...] = tuple(Emotion)


class Mood(str, Enum):
    EUPHORIC = "euphoric"
    CONTENT = "content"
    EXCITED = "excited"
    ANXIOUS = "anxious"
    MELANCHOLIC = "melancholic"
    ANGRY = "angry"
    SUSPICIOUS = "suspicious"
    SURPRISED = "surprised"
    CALM = "calm"
    NEUTRAL = "neutral"


class WeatherType(str, Enum):
    CLEAR = "clear"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"
    LIGHT_RAIN = "light_rain"
    RAIN = "rain"
    STORM = "storm"
    FOG = "fog"
    SNOW = "snow"
    WINDY = "windy"


class ChamberType(str, Enum):
    AMPLIFIER = "amplifier"
    STABILIZER = "stabilizer"
    TRANSFORMER = "transformer"


class Trend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"


class TimeOfDay(str, Enum):
    DAWN = "dawn"            # 5-7am
    MORNING = "morning"      # 7am-12pm
    AFTERNOON = "afternoon"  # 12-5pm
    DUSK = "dusk"            # 5-7pm
    NIGHT = "night"          # 7pm-5am, wraps midnight


class Chronotype(str, Enum):
    MORNING_LARK = "morning_lark"
    NIGHT_OWL = "night_owl"
    NEUTRAL = "neutral"


class RelationshipType(str, Enum):
    STRANGER = "stranger"
    ACQUAINTANCE = "acquaintance"
    FRIEND = "friend"
    CLOSE_FRIEND = "close_friend"
    RIVAL = "rival"


class ConversationEvent(str, Enum):
    CONVERSATION_STARTED = "conversation_started"
    POSITIVE_EXCHANGE = "positive_exchange"
    NEGATIVE_EXCHANGE = "negative_exchange"
    CONVERSATION_ENDED = "conversation_ended"
    REJECTED_INVITE = "rejected_invite"


class Need(str, Enum):
    AUTONOMY = "autonomy"
    COMPETENCE = "competence"
    RELATEDNESS = "relatedness"
    STIMULATION = "stimulation"
    SECURITY = "security"

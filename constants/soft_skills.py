"""
Static scoring configuration for the soft-skill engine.

The correlation tables map a soft-skill code to the psychometric
dimensions that feed it, with a weight per dimension:

- Big-Five traits are centred on 50: each trait moves the score by
  ``(trait - 50) * weight`` from a neutral 50. Negative weights invert a
  trait (e.g. neuroticism against resilience).
- DISC dimensions and Belbin team roles are combined as a weighted mean of
  the dimension values.

These maps are loaded once at import. Keys are soft-skill codes as stored
in ``soft_skills.code``; codes absent from a table get a neutral 50 from
that model.
"""

BIG_FIVE = "big_five"
DISC = "disc"
BELBIN = "belbin"

MODEL_WEIGHTS = {
    BIG_FIVE: 0.35,
    DISC: 0.35,
    BELBIN: 0.30,
}

NEUTRAL_SCORE = 50.0

BIG_FIVE_CORRELATIONS = {
    "communication_effective": {"extraversion": 0.7, "agreeableness": 0.3},
    "active_listening": {"agreeableness": 0.6, "extraversion": -0.2},
    "empathy": {"agreeableness": 0.8, "openness": 0.2},
    "emotional_intelligence": {"neuroticism": -0.5, "agreeableness": 0.5},
    "teamwork": {"agreeableness": 0.7, "extraversion": 0.3},
    "leadership": {"extraversion": 0.6, "conscientiousness": 0.4},
    "critical_thinking": {"openness": 0.7, "conscientiousness": 0.3},
    "problem_solving": {"openness": 0.6, "conscientiousness": 0.4},
    "flexibility": {"openness": 0.8, "neuroticism": -0.2},
    "time_management": {"conscientiousness": 0.9, "neuroticism": -0.1},
    "decision_making": {"conscientiousness": 0.5, "extraversion": 0.5},
    "resilience": {"neuroticism": -0.8, "conscientiousness": 0.2},
}

DISC_CORRELATIONS = {
    "communication_effective": {"I": 0.8, "S": 0.2},
    "active_listening": {"S": 0.7, "C": 0.3},
    "empathy": {"S": 0.8, "I": 0.2},
    "emotional_intelligence": {"S": 0.5, "I": 0.5},
    "teamwork": {"S": 0.6, "I": 0.4},
    "leadership": {"D": 0.7, "I": 0.3},
    "critical_thinking": {"C": 0.8, "D": 0.2},
    "problem_solving": {"D": 0.6, "C": 0.4},
    "flexibility": {"I": 0.6, "S": 0.4},
    "time_management": {"C": 0.7, "D": 0.3},
    "decision_making": {"D": 0.9, "C": 0.1},
    "resilience": {"D": 0.5, "S": 0.5},
}

BELBIN_CORRELATIONS = {
    "communication_effective": {"resource_investigator": 0.6, "coordinator": 0.4},
    "active_listening": {"team_worker": 0.8, "coordinator": 0.2},
    "empathy": {"team_worker": 0.9, "coordinator": 0.1},
    "emotional_intelligence": {"coordinator": 0.6, "team_worker": 0.4},
    "teamwork": {"team_worker": 0.7, "coordinator": 0.3},
    "leadership": {"coordinator": 0.5, "shaper": 0.5},
    "critical_thinking": {"monitor_evaluator": 0.8, "plant": 0.2},
    "problem_solving": {"plant": 0.6, "implementer": 0.4},
    "flexibility": {"resource_investigator": 0.7, "plant": 0.3},
    "time_management": {"completer_finisher": 0.7, "implementer": 0.3},
    "decision_making": {"shaper": 0.7, "coordinator": 0.3},
    "resilience": {"shaper": 0.6, "completer_finisher": 0.4},
}

# Minimum normalized score for each level, highest first
SKILL_LEVELS = (
    (80, "expert"),
    (60, "advanced"),
    (40, "intermediate"),
    (0, "beginner"),
)

TREND_THRESHOLD = 5

# 360 feedback source weights
SELF_ASSESSMENT = "self"
PEER_ASSESSMENT = "peer"
MANAGER_ASSESSMENT = "manager"

SOURCE_WEIGHTS = {
    SELF_ASSESSMENT: 0.25,
    PEER_ASSESSMENT: 0.35,
    MANAGER_ASSESSMENT: 0.40,
}

# Role requirement defaults, keyed on priority (1 = highest)
HIGH_PRIORITY_CUTOFF = 2
HIGH_PRIORITY_MIN_SCORE = 50
DEFAULT_MIN_SCORE = 40
HIGH_PRIORITY_TARGET_SCORE = 80
DEFAULT_TARGET_SCORE = 60
FALLBACK_TARGET_SCORE = 70
CLOSE_GAP = 10

# Team analysis bands
TEAM_STRENGTH_SCORE = 70
TEAM_WEAKNESS_SCORE = 50
TEAM_SPREAD_GAP = 20

"""Built-in industry vocabularies, objection responses and personality playbooks."""

GENERAL_INDUSTRY = "General"

# Registration order is the tie-break for industry detection.
INDUSTRY_KEYWORDS = {
    "MLM": [
        "network marketing", "mlm", "multi-level", "recruitment", "downline", "upline",
        "sponsor", "team building", "passive income", "residual income", "business opportunity",
        "financial freedom", "side hustle", "extra income", "work from home",
    ],
    "Insurance": [
        "insurance", "policy", "coverage", "premium", "protection", "life insurance",
        "health insurance", "car insurance", "family protection", "beneficiary",
        "claim", "underwriting", "agent", "vul", "term insurance",
    ],
    "Real_Estate": [
        "real estate", "property", "condo", "house", "lot", "pre-selling",
        "investment property", "rental", "commercial space", "residential",
        "developer", "broker", "agent", "title", "deed", "mortgage",
    ],
    "Small_Business": [
        "business", "startup", "entrepreneur", "sales", "marketing", "customers",
        "revenue", "profit", "growth", "scale", "product", "service",
        "b2b", "b2c", "smb", "sme", "freelance",
    ],
    "Wellness": [
        "health", "wellness", "supplement", "fitness", "nutrition", "diet",
        "weight loss", "detox", "vitamins", "organic", "natural", "herbal",
    ],
    "Financial_Services": [
        "investment", "mutual fund", "stocks", "trading", "forex", "crypto",
        "financial advisor", "wealth management", "retirement", "portfolio",
    ],
    "Education": [
        "training", "course", "seminar", "workshop", "coaching", "mentoring",
        "certification", "online class", "tutorial", "learning",
    ],
}

DEFAULT_OBJECTION_RESPONSE = (
    "I understand your concern. Can we discuss what specific aspect worries you?"
)

OBJECTION_RESPONSES = {
    "price": {
        "MLM": "I understand budget is important. Think of this as an investment in your future income, not an expense. Many of our successful members started with similar concerns.",
        "Insurance": "I hear you. Let me show you how this protection actually saves you money in the long run, especially considering what could happen without it.",
        "Real_Estate": "Great question. Let's look at the payment options and how property values have historically appreciated in this area.",
        "Small_Business": "I understand ROI is crucial. Let me show you the data on how this has helped similar businesses like yours.",
    },
    "time": {
        "MLM": "That's exactly why this works: it's designed for busy people. You can start with just 2-3 hours a week.",
        "Insurance": "I appreciate your time. This takes just 15 minutes, but protects years of your family's future.",
        "Real_Estate": "I get it. Let me send you the property details you can review in 5 minutes, then we can talk when convenient.",
        "Small_Business": "Perfect. This solution actually saves you time by automating what you're already doing.",
    },
    "trust": {
        "MLM": "I understand your concern. Let me share testimonials from people just like you, plus our company's track record.",
        "Insurance": "Trust is everything in this business. Let me show you our company ratings and introduce you to some of my clients.",
        "Real_Estate": "Absolutely valid concern. Here's our license, completed projects, and client reviews.",
        "Small_Business": "Makes sense. Here's our case studies, client testimonials, and a no-obligation trial.",
    },
}

PERSONALITY_APPROACHES = {
    "driver": {
        "communication_style": "direct",
        "focus": "results",
        "message_tone": "efficient",
        "key_points": ["ROI", "efficiency", "speed", "results"],
        "avoid": ["too much detail", "slow pace", "relationship building"],
    },
    "amiable": {
        "communication_style": "friendly",
        "focus": "relationship",
        "message_tone": "warm",
        "key_points": ["trust", "support", "community", "helping others"],
        "avoid": ["aggressive", "pushy", "cold"],
    },
    "analytical": {
        "communication_style": "detailed",
        "focus": "data",
        "message_tone": "logical",
        "key_points": ["proof", "statistics", "case studies", "methodology"],
        "avoid": ["emotion", "hype", "pressure"],
    },
    "expressive": {
        "communication_style": "enthusiastic",
        "focus": "vision",
        "message_tone": "exciting",
        "key_points": ["opportunity", "innovation", "success stories", "recognition"],
        "avoid": ["boring", "too technical", "negative"],
    },
}
DEFAULT_PERSONALITY = "amiable"

COMMUNICATION_STYLES = {
    "driver": "direct_results_focused",
    "amiable": "relationship_focused",
    "analytical": "data_focused",
    "expressive": "enthusiasm_focused",
}
DEFAULT_COMMUNICATION_STYLE = "balanced"

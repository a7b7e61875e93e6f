"""First-aid guides that open_first_aid can resolve to.

Steps are written to be read aloud one at a time.
"""

from dataclasses import dataclass

CATEGORIES = ("cardiac", "respiratory", "trauma", "medical")


@dataclass(frozen=True)
class Guide:
    id: str
    title: str
    category: str
    description: str
    steps: tuple
    warnings: tuple = ()


GUIDES = (
    Guide(
        "cpr", "CPR - Cardiopulmonary Resuscitation", "cardiac",
        "For unresponsive person not breathing normally",
        (
            'Check for responsiveness: Tap shoulders and shout "Are you okay?"',
            "Call for help: Shout for someone to call emergency services (911/112)",
            "Position the person: Lay them flat on their back on a firm surface",
            "Open airway: Tilt head back, lift chin to open airway",
            "Check breathing: Look, listen, feel for 10 seconds maximum",
            "Start compressions: Place heel of hand on center of chest",
            "Compress hard and fast: Push down 5-6cm, 100-120 compressions per minute",
            "Give 30 compressions, then 2 rescue breaths if trained",
            "Continue CPR until help arrives or person shows signs of life",
        ),
        (
            "Do not perform if person is breathing normally",
            "Do not give up - continue until help arrives",
        ),
    ),
    Guide(
        "choking", "Choking", "respiratory",
        "For person unable to breathe due to blocked airway",
        (
            'Ask: "Are you choking?" - if they cannot speak, act immediately',
            "Encourage them to cough if they can",
            "If unable to cough: give 5 back blows",
            "Stand behind them, lean them forward",
            "Strike firmly between shoulder blades with heel of hand",
            "If back blows fail: give 5 abdominal thrusts (Heimlich)",
            "Stand behind, make fist above navel, pull sharply inward and upward",
            "Alternate 5 back blows and 5 abdominal thrusts",
            "Continue until object is dislodged or person becomes unconscious",
            "If unconscious: begin CPR and call emergency services",
        ),
        (
            "Do not perform on pregnant women or infants",
            "Seek medical check-up after abdominal thrusts",
        ),
    ),
    Guide(
        "severe-bleeding", "Severe Bleeding", "trauma",
        "For wounds with heavy blood flow",
        (
            "Ensure your safety first - wear gloves if available",
            "Call for emergency help immediately",
            "Apply direct pressure to wound with clean cloth",
            "Maintain firm pressure for at least 10 minutes",
            "Do not remove cloth if blood soaks through - add more on top",
            "If possible, elevate injured area above heart level",
            "Apply pressure to pressure points if bleeding continues",
            "Secure bandage firmly once bleeding slows",
            "Keep person warm and lying down",
            "Monitor for shock: pale skin, rapid breathing, confusion",
        ),
        (
            "Do not remove embedded objects",
            "Do not use tourniquet unless trained",
            "Seek immediate medical care",
        ),
    ),
    Guide(
        "burns", "Burns", "trauma",
        "For thermal, chemical, or electrical burns",
        (
            "Remove person from source of burn immediately",
            "Cool the burn with running water for 20 minutes",
            "Remove jewelry and tight clothing near burn (not stuck to skin)",
            "Do not apply ice directly - use cool running water only",
            "Cover burn loosely with sterile, non-stick bandage",
            "Do not break blisters or apply creams/ointments",
            "Give over-the-counter pain relief if needed",
            "Keep person warm with blanket (not on burned area)",
            "Seek medical help for large, deep, or facial burns",
        ),
        (
            "Never apply ice, butter, or creams",
            "Seek immediate help for electrical or chemical burns",
        ),
    ),
    Guide(
        "fracture", "Fracture or Broken Bone", "trauma",
        "For suspected broken bones",
        (
            "Do not move the person unless in immediate danger",
            "Call for emergency medical help",
            "Immobilize the injured area - do not try to realign",
            "Apply ice pack wrapped in cloth to reduce swelling",
            "Support the injury with padding (pillows, towels)",
            "If bleeding, apply pressure with clean cloth",
            "Keep person warm and calm",
            "Do not give food or drink (may need surgery)",
            "Monitor for shock: pale skin, rapid breathing",
            "Wait for professional medical help to move person",
        ),
        (
            "Do not move neck or back injuries",
            "Do not attempt to straighten broken bones",
        ),
    ),
    Guide(
        "shock", "Shock", "medical",
        "Life-threatening condition requiring immediate care",
        (
            "Call emergency services immediately",
            "Lay person down on their back",
            "Elevate legs 30cm (if no head, neck, or back injury)",
            "Keep person warm with blankets",
            "Do not give food or drink",
            "Loosen tight clothing",
            "Turn head to side if vomiting",
            "Monitor breathing and pulse continuously",
            "Begin CPR if person stops breathing",
            "Stay with person until help arrives",
        ),
        (
            "Do not elevate legs if suspect head/spine injury",
            "This is a medical emergency - always call for help",
        ),
    ),
    Guide(
        "heart-attack", "Heart Attack", "cardiac",
        "Chest pain, shortness of breath, arm pain",
        (
            "Call emergency services immediately",
            "Help person sit down and rest (semi-upright position)",
            "Loosen any tight clothing",
            "If person has prescribed nitroglycerin, help them take it",
            "Give aspirin (300mg) if available and no allergy - chew it",
            "Keep person calm and reassured",
            "Monitor breathing and consciousness",
            "If person becomes unconscious: check breathing",
            "If not breathing: begin CPR immediately",
            "Stay with person until emergency services arrive",
        ),
        (
            "Never give aspirin to children or those with aspirin allergy",
            "This is a medical emergency",
        ),
    ),
    Guide(
        "seizure", "Seizure", "medical",
        "Uncontrolled muscle movements and loss of consciousness",
        (
            "Stay calm and time the seizure",
            "Clear area of dangerous objects",
            "Cushion head with something soft",
            "Loosen tight clothing around neck",
            "Turn person on their side when possible (recovery position)",
            "Do NOT restrain the person",
            "Do NOT put anything in their mouth",
            "Stay with them until fully conscious",
            "Speak calmly and reassure them after seizure ends",
            "Call emergency services if: first seizure, lasts >5 min, or injury occurs",
        ),
        (
            "Never put objects in mouth",
            "Do not restrain movement",
            "Protect from injury but do not hold down",
        ),
    ),
)


def get_guide(guide_id):
    for guide in GUIDES:
        if guide.id == guide_id:
            return guide
    return None


def guides_in_category(category):
    return [g for g in GUIDES if g.category == category]

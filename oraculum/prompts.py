"""Fixed prompt templates sent to the generation service."""

READING_FIELDS = ("name", "visualDescription", "meaning", "spiritualMessage")

READING_PROMPT = """
Agis comme un mystique expert en Tarot.
Tire une carte de Tarot aléatoire (Majeure ou Mineure) pour l'utilisateur.
Génère une réponse structurée en JSON contenant :
1. Le nom de la carte (en Français).
2. Une description visuelle courte mais évocatrice de la carte (pour générer une image ensuite).
3. La signification générale.
4. Un message spirituel personnel et profond pour l'utilisateur aujourd'hui.
""".strip()

# JSON Schema for the reading; every field is a required string.
READING_JSON_SCHEMA = {
    "type": "object",
    "properties": {field: {"type": "string"} for field in READING_FIELDS},
    "required": list(READING_FIELDS),
    "additionalProperties": False,
}

IMAGE_PROMPT = (
    "Une carte de tarot artistique et mystique représentant: {name}. {description}. "
    "Style détaillé, spirituel, onirique, haute résolution, format carte de tarot."
)

EDIT_PROMPT = (
    "Modifie cette image de carte de tarot selon l'instruction suivante : \"{instruction}\". "
    "Garde la composition générale d'une carte de tarot mais applique le changement "
    "de style ou de contenu demandé."
)


def image_prompt(description: str, name: str) -> str:
    return IMAGE_PROMPT.format(name=name, description=description)


def edit_prompt(instruction: str) -> str:
    return EDIT_PROMPT.format(instruction=instruction)

"""Reply styles and the persisted bot configuration."""

from ..logging_config import get_logger
from ..models import BotConfig, BotStyle

logger = get_logger(__name__)

DEFAULT_STYLE_ID = "directo"

DEFAULT_STYLES = [
    BotStyle(
        id="directo",
        name="Directo y Eficiente",
        description="Mensajes cortos, sin relleno, agrupa preguntas.",
        prompt_modifier="\n".join([
            "- Mensajes CORTOS y DIRECTOS. Máximo 2-3 líneas por mensaje.",
            "- NO repitas información que el usuario acaba de dar.",
            '- NO hagas resúmenes innecesarios ("Entonces, para resumir...").',
            '- NO uses frases de relleno ("¡Gracias por la información!", "Entendido").',
            "- AGRUPA las preguntas relacionadas en UN SOLO mensaje.",
            "- Si el usuario da varios datos, reconócelos brevemente y pregunta SOLO lo que falta.",
            "- Sé amable pero valora el tiempo del usuario.",
            '- VARÍA tu vocabulario: alterna "Genial", "Estupendo", "Vale", "De acuerdo".',
        ]),
    ),
    BotStyle(
        id="amigable",
        name="Amigable y Cercano",
        description="Tono cálido con emojis, más personalizado y conversacional.",
        prompt_modifier="\n".join([
            "- Usa un tono CÁLIDO y CERCANO, como si hablaras con un amigo.",
            "- Incluye emojis ocasionales para dar calidez (😊, 👍, 🏠, ✨) pero sin exceso.",
            "- Haz preguntas de una en una para que la conversación fluya naturalmente.",
            "- Muestra entusiasmo genuino por ayudar al cliente a encontrar su hogar ideal.",
            "- Personaliza las respuestas usando el nombre del cliente cuando lo sepas.",
            "- Sé empático si el cliente expresa dudas o preocupaciones.",
        ]),
    ),
    BotStyle(
        id="formal",
        name="Formal y Profesional",
        description="Tratamiento de usted, lenguaje corporativo y profesional.",
        prompt_modifier="\n".join([
            "- Usa tratamiento de USTED en todo momento.",
            "- Mantén un tono PROFESIONAL y CORPORATIVO.",
            "- Evita coloquialismos y expresiones informales.",
            '- Usa frases como "Le informo que...", "Permítame indicarle...".',
            "- No uses emojis ni expresiones demasiado efusivas.",
            '- Agradece formalmente: "Le agradezco su interés", "Gracias por su tiempo".',
        ]),
    ),
    BotStyle(
        id="conciso",
        name="Ultra Conciso",
        description="Mínimo de palabras, solo información esencial.",
        prompt_modifier="\n".join([
            "- MÁXIMA brevedad. Una línea por mensaje si es posible.",
            "- Solo lo ESENCIAL. Nada de cortesías innecesarias.",
            "- Preguntas directas sin introducción.",
            "- Sin emojis, sin relleno, sin repeticiones.",
            '- Ejemplo: "¿Hipoteca o contado?" en vez de una pregunta larga.',
        ]),
    ),
]


def default_config() -> BotConfig:
    return BotConfig(active_style_id=DEFAULT_STYLE_ID, styles=list(DEFAULT_STYLES))


async def load_bot_config(storage) -> BotConfig:
    """Read the bot configuration, seeding the defaults the first time."""
    config = await storage.get_bot_config()
    if config is None:
        config = default_config()
        await storage.save_bot_config(config)
        logger.info("Seeded default bot configuration")
    return config


async def load_active_style(storage) -> BotStyle:
    """Active style from the stored configuration, or the first default style."""
    config = await load_bot_config(storage)
    return config.active_style() or DEFAULT_STYLES[0]

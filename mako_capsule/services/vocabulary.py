"""Data tables driving the heuristic extractors.

Kept apart from the matching code so they can be extended or localised
without touching the extractors. Order matters in every tuple: the first
matching entry wins.
"""

import re
from typing import Dict, List, Pattern, Tuple

# ---------------------------------------------------------------------------
# Call-to-action vocabulary: (pattern, action name, description)
# ---------------------------------------------------------------------------
_ACTION_TABLE: Tuple[Tuple[str, str, str], ...] = (
    (
        r"add\s*to\s*(?:cart|basket|bag)"
        r"|a[ñn]adir\s+al\s+(?:carrito|carro|cesta)"
        r"|agregar\s+al\s+carrito"
        r"|ajouter\s+au\s+panier"
        r"|in\s+den\s+warenkorb"
        r"|adicionar\s+ao\s+carrinho"
        r"|aggiungi\s+al\s+carrello",
        "add_to_cart",
        "Add this product to the shopping cart",
    ),
    (
        r"buy\s*now|comprar\s+(?:ahora|agora|ya)|acheter\s+maintenant|jetzt\s+kaufen|compra\s+ora",
        "purchase",
        "Buy now",
    ),
    (r"purchase|\bcomprar\b|\bacheter\b|\bkaufen\b|\bacquista", "purchase", "Purchase item"),
    (
        r"check\s*out|finalizar\s+(?:la\s+)?compra|tramitar\s+pedido"
        r"|passer\s+(?:à\s+la\s+)?commande|zur\s+kasse",
        "checkout",
        "Proceed to checkout",
    ),
    (
        r"add\s*to\s*wish\s*list|lista\s+de\s+deseos|liste\s+de\s+souhaits|wunschliste",
        "add_to_wishlist",
        "Add to wishlist",
    ),
    (r"subscribe|suscr[ií]b|s'abonner|abonnieren|inscreva|iscriviti", "subscribe", "Subscribe"),
    (
        r"sign\s*up|get\s*started|try\s*(?:it\s*)?free|start\s*(?:(?:a|your)\s*)?(?:free\s*)?trial"
        r"|create\s+(?:an\s+)?account|cr[eé]ar?\s+(?:una\s+)?cuenta|cr[eé]er\s+un\s+compte|konto\s+erstellen|prueba\s+gratis",
        "sign_up",
        "Sign up for an account",
    ),
    (r"register|rsvp|reg[ií]str(?:ar)?se|inscri(?:bir|re)|registrieren", "register", "Register"),
    (
        r"log\s*in|sign\s*in|iniciar\s+sesi[oó]n|\bacceder\b|se\s+connecter|connexion"
        r"|\banmelden\b|einloggen|\bentrar\b",
        "login",
        "Log in",
    ),
    (r"download|descargar|t[eé]l[eé]charger|herunterladen|baixar|scarica", "download", "Download"),
    (r"contact|cont[aá]ct(?:o|a|e)|kontakt|contatt", "contact", "Contact"),
    (r"\bshare\b|compartir|partager|\bteilen\b|condividi", "share", "Share"),
    (r"\bbook\b|reserv|\bbuchen\b|prenota", "book", "Book or reserve"),
    (r"donat|spenden|faire\s+un\s+don", "donate", "Donate"),
    (r"compar|vergleichen|confronta", "compare", "Compare"),
    (
        r"check\s*availability|ver\s+disponibilidad|v[eé]rifier\s+(?:la\s+)?disponibilit"
        r"|verf[üu]gbarkeit",
        "check_availability",
        "Check availability",
    ),
    (r"apply(?:\s+now)?|\bpostular|\bpostuler\b|bewerben|candidat", "apply", "Apply"),
    (
        r"learn\s*more|read\s*more|saber\s+m[aá]s|leer\s+m[aá]s|en\s+savoir\s+plus"
        r"|mehr\s+erfahren|saiba\s+mais|scopri\s+di\s+pi[uù]",
        "learn_more",
        "Learn more",
    ),
    (
        r"view\s*details|ver\s+detalles|voir\s+(?:les\s+)?d[eé]tails|details\s+ansehen",
        "view_details",
        "View details",
    ),
    (
        r"request\s*(?:a\s*)?(?:demo|quote)|solicitar\s+(?:una\s+)?(?:demo|presupuesto|cotizaci[oó]n)"
        r"|demander\s+un\s+devis|angebot\s+anfordern",
        "request_demo",
        "Request a demo or quote",
    ),
)

ACTION_PATTERNS: Tuple[Tuple[Pattern[str], str, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), name, description)
    for pattern, name, description in _ACTION_TABLE
)

# ---------------------------------------------------------------------------
# Link denylist: matched against the path + query of a resolved URL
# ---------------------------------------------------------------------------
LINK_SKIP_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"privac",
        r"cookie",
        r"legal",
        r"terms",
        r"condiciones",
        r"politica-de",
        r"/wp-admin",
        r"/wp-login",
        r"/wp-content",
        r"/wp-json",
        r"xmlrpc",
        r"/feed/?(?:\?|$)",
        r"/api/",
        r"login",
        r"register",
        r"/cart\b",
        r"/checkout\b",
        r"/my-account",
    )
)

# ---------------------------------------------------------------------------
# Content-type classification
# ---------------------------------------------------------------------------
NATIVE_TYPE_MAP: Dict[str, str] = {
    "post": "article",
    "page": "landing",
    "product": "product",
    "tribe_events": "event",
    "tribe_event": "event",
    "event": "event",
    "recipe": "recipe",
    "faq": "faq",
    "docs": "docs",
    "doc": "docs",
    "document": "docs",
    "documentation": "docs",
    "knowledgebase": "docs",
    "kb": "docs",
}

DOCS_KEYWORDS = ("docs", "documentation", "api", "reference", "guide", "manual", "handbook")
FAQ_KEYWORDS = ("faq", "frequently-asked", "frequently asked", "preguntas")
PROFILE_SLUGS = ("about", "about-us", "about-me", "team", "author", "sobre-nosotros")
LISTING_KEYWORDS = ("directory", "listing", "catalog", "index", "resources")

# ---------------------------------------------------------------------------
# Section scaffolding for thin documents
# ---------------------------------------------------------------------------
SECTION_TEMPLATES: Dict[str, List[str]] = {
    "product": ["Key Facts", "Context", "Reviews Summary"],
    "article": ["Summary", "Key Points", "Context"],
    "docs": ["Overview", "Usage", "Parameters/API", "See Also"],
    "landing": ["What It Does", "Key Features", "Pricing", "Alternatives"],
    "listing": ["Items", "Filters Available"],
    "profile": ["About", "Key Information", "Notable Work"],
    "event": ["Details", "Description", "Registration"],
    "recipe": ["Ingredients", "Steps", "Notes"],
}

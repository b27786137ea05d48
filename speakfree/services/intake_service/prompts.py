"""French texts and quick actions of the intake assistant."""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from speakfree.shared.models import School


@dataclass(frozen=True)
class QuickAction:
    """Suggested answer shown as a button; ``message`` is sent when tapped."""
    label: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "message": self.message}


WELCOME_TEXT = """Bonjour ! 👋 Je suis {assistant}, ton assistant IA personnel.

Je suis là pour t'aider à signaler un problème dans ton école de manière sécurisée et confidentielle.

Je vais te poser quelques questions pour bien comprendre ta situation. Ne t'inquiète pas, tout est confidentiel et je suis là pour t'aider ! 😊

Pour commencer, peux-tu me dire ce qui se passe ?"""

WELCOME_ACTIONS = (
    QuickAction("🎯 Harcèlement", "Je suis victime de harcèlement"),
    QuickAction("⚠️ Violence physique", "Il y a de la violence physique"),
    QuickAction("💊 Drogue", "C'est lié à la drogue"),
    QuickAction("🔪 Arme", "J'ai vu une arme"),
    QuickAction("💬 Cyberharcelement", "Je suis victime de cyberharcelement"),
    QuickAction("🚨 Situation urgente", "C'est une situation urgente"),
    QuickAction("💰 Vol/Racket", "Il y a eu un vol ou du racket"),
    QuickAction("📱 Autre problème", "Je veux signaler autre chose"),
)

# Category step
CATEGORY_ACKNOWLEDGEMENTS: Dict[str, str] = {
    "harcelement": """Je comprends que tu es victime de harcèlement. C'est très courageux de ta part d'en parler. 💪

Peux-tu me dire où cela se passe ? (classe, cour de récréation, couloirs, etc.)""",
    "violence": """Je comprends qu'il y a une situation de violence. C'est très sérieux et nous allons t'aider.

Peux-tu me dire où cela se passe ?""",
    "drogue": """Merci de signaler cette situation de drogue. C'est important.

Peux-tu me dire où cela se passe dans l'école ?""",
    "vol": """Je comprends qu'il y a eu un vol ou du racket. Nous allons t'aider.

Où est-ce que cela s'est passé ?""",
    "arme": """🚨 C'est une situation EXTRÊMEMENT URGENTE. Merci de me le signaler.

Où as-tu vu cette arme ? Peux-tu me donner des détails précis ?

⚠️ Si tu es en danger immédiat, contacte aussi les autorités (police 17).""",
    "cyberharcelement": """Je comprends que tu es victime de cyberharcelement. C'est un problème très sérieux.

Où cela se passe-t-il principalement ? (réseaux sociaux, messages, groupes de classe, etc.)""",
    "discrimination": """Je comprends que tu es victime de discrimination. C'est inacceptable.

Peux-tu me dire où cela se passe ?""",
    "adulte": """Je comprends que cela implique un adulte de l'établissement. C'est très sérieux.

Peux-tu me dire où cela se passe ?""",
    "agression_sexuelle": """🚨 C'est une situation TRÈS GRAVE. Tu es très courageux(se) de me le dire.

Où cela s'est-il passé ?

⚠️ Important : Tu peux aussi appeler le 119 (Allô Enfance en Danger) pour parler à quelqu'un immédiatement.""",
}

CATEGORY_CLARIFICATION = """Je vois. Peux-tu me donner plus de détails sur ce qui se passe ? Cela m'aidera à mieux comprendre la situation.

Par exemple :
- Est-ce du harcèlement ?
- De la violence ?
- Un vol ?
- Autre chose ?"""

CATEGORY_CLARIFICATION_ACTIONS = (
    QuickAction("🎯 Harcèlement", "C'est du harcèlement"),
    QuickAction("⚠️ Violence", "C'est de la violence"),
    QuickAction("💊 Drogue", "C'est lié à la drogue"),
    QuickAction("🔪 Arme", "J'ai vu une arme"),
)

# Location and description steps
LOCATION_ACKNOWLEDGEMENT = """D'accord, noté pour le lieu : {location}

Maintenant, peux-tu me décrire ce qui s'est passé ? Donne-moi autant de détails que possible pour que l'administration puisse bien comprendre."""

DEFAULT_EMPATHY = "Merci pour ces informations détaillées. Je comprends mieux la situation."

EMPATHY_MESSAGES: Dict[str, str] = {
    "harcelement": "Merci d'avoir partagé ça avec moi. Le harcèlement n'est jamais acceptable et tu as raison de le signaler. 💪",
    "cyberharcelement": "Merci d'avoir partagé ça avec moi. Le harcèlement n'est jamais acceptable et tu as raison de le signaler. 💪",
    "violence": "C'est très courageux de ta part de parler de cette violence. Personne ne devrait vivre ça.",
    "agression_sexuelle": "Merci de ta confiance. Ce que tu vis n'est PAS de ta faute. Tu as bien fait de me le dire.",
}

WITNESS_QUESTION = """{empathy}

Y a-t-il des témoins ? D'autres personnes ont-elles vu ce qui s'est passé ?"""

WITNESS_ACTIONS = (
    QuickAction("✅ Oui, il y a des témoins", "Oui, il y a des témoins"),
    QuickAction("❌ Non, pas de témoins", "Non, personne n'a vu"),
    QuickAction("🤷 Je ne sais pas", "Je ne sais pas s'il y a des témoins"),
)

# School step
SCHOOL_CODE_PROMPT = """Parfait. Maintenant, j'ai besoin de connaître le code de ton école pour créer le signalement.

Peux-tu me donner le code de ton école ? (Si tu ne le connais pas, demande à un adulte ou cherche sur le site de ton école)"""

SCHOOL_NAME_PROMPT = """D'accord, pas de problème !

Pour t'aider à trouver ton école, peux-tu me donner son nom ?

📝 Écris : "Mon école s'appelle [nom complet de ton école]"

Exemple : "Mon école s'appelle Collège Jules Ferry\""""

SCHOOL_NAME_NOT_FOUND = """❌ Je n'ai pas trouvé d'école avec ce nom.

Essaye de donner plus de détails ou le nom complet de ton école.

Exemple : "Mon école s'appelle Lycée Victor Hugo\""""

SCHOOL_CODE_NOT_FOUND = """❌ Je ne trouve pas le code "{code}" dans notre système.

Voici comment retrouver ton code d'école :

1️⃣ **Demande à un adulte** (parent, professeur)
2️⃣ **Regarde sur le site web** de ton école
3️⃣ **Vérifie tes documents** scolaires (carnet, inscription)

Le format est : 3 lettres + chiffres (exemple: ECO3847)

💡 Tu peux aussi essayer sans le code en utilisant le nom de ton école. Tape : "Mon école s'appelle [nom]\""""

SCHOOL_CODE_NOT_FOUND_ACTIONS = (
    QuickAction("🏫 Essayer avec le nom", "Je ne connais pas le code, mon école s'appelle"),
    QuickAction("🔄 Réessayer le code", "Je veux réessayer avec un autre code"),
)

SCHOOL_CODE_NOT_UNDERSTOOD = """Je n'ai pas bien compris le code de ton école.

📋 **Format attendu** : ECO3847 (3 lettres + chiffres)

**Exemples corrects** :
✅ ECO3847
✅ LYC1234
✅ COL9876

Peux-tu me donner le code de ton école ?

💡 Si tu ne le connais pas, tape : "Je ne connais pas le code\""""

SCHOOL_CODE_NOT_UNDERSTOOD_ACTIONS = (
    QuickAction("❓ Je ne connais pas le code", "Je ne connais pas le code de mon école"),
)

SCHOOL_LOOKUP_FAILED = """😕 Je n'arrive pas à consulter la liste des écoles pour le moment.

Peux-tu me redonner le code (ou le nom) de ton école dans quelques instants ?"""

# Contact step
CONTACT_QUESTION = """✅ École trouvée : {code}

Étant donné que c'est une situation {gravity}, veux-tu laisser tes coordonnées pour que l'école puisse te contacter rapidement ?

⚠️ C'est optionnel, mais cela peut permettre une intervention plus rapide."""

CONTACT_ACTIONS = (
    QuickAction("📞 Oui, je laisse mes coordonnées", "Oui, je veux laisser mes coordonnées"),
    QuickAction("🔒 Non, je reste anonyme", "Non, je préfère rester anonyme"),
)

CONTACT_INFO_PROMPT = """D'accord. Pour que l'école puisse te contacter :

Peux-tu me donner ton prénom et un numéro de téléphone ou email ?

Format : Prénom - Téléphone/Email"""

# Arrival at ready
READY_TEXT = """✅ Parfait ! J'ai toutes les informations nécessaires.

Je vais maintenant créer ton signalement de manière sécurisée. Tu vas recevoir un code de suivi et un code d'accès pour suivre ton dossier."""

ANONYMOUS_READY_TEXT = """Pas de problème, ton signalement restera totalement anonyme. 🔒

Je crée maintenant ton signalement..."""

CONTACT_READY_TEXT = """✅ Informations de contact enregistrées.

Je crée maintenant ton signalement avec tes coordonnées pour une intervention rapide."""

CREATE_NOW_TEXT = "✅ Parfait ! Je crée ton signalement maintenant."

REPORT_CREATED_TEXT = """🎉 Ton signalement a bien été créé !

📋 Code de suivi : {report_code}
🔐 Code d'accès : {access_code}

Garde précieusement ces deux codes : ils te permettront de suivre ton dossier et d'échanger avec l'école en toute confidentialité."""

REPORT_FAILED_TEXT = """😔 Oups, je n'ai pas réussi à créer ton signalement pour le moment.

Ne t'inquiète pas, tout ce que tu m'as dit est bien noté. Envoie-moi un nouveau message ou tape "créer le signalement" pour réessayer."""

REPORT_FAILED_ACTIONS = (
    QuickAction("🔄 Réessayer", "Réessaie de créer le signalement"),
)

ALREADY_CREATED_TEXT = """✅ Ton signalement a déjà été créé.

📋 Code de suivi : {report_code}

Tu peux le suivre à tout moment avec ton code d'accès."""

# Ready-state commands
SUMMARY_ACTIONS = (
    QuickAction("✅ Créer le signalement", "Oui, crée le signalement maintenant"),
    QuickAction("✏️ Modifier quelque chose", "Je veux modifier quelque chose"),
)

MODIFY_TEXT = "Que veux-tu modifier ?"

MODIFY_ACTIONS = (
    QuickAction("📍 Le lieu", "Je veux changer le lieu"),
    QuickAction("📝 La description", "Je veux modifier la description"),
    QuickAction("👥 Les témoins", "Je veux modifier les témoins"),
    QuickAction("🔙 Annuler", "Finalement non, continue"),
)

HELP_ACTIONS = (
    QuickAction("✅ Créer le signalement", "Merci, je veux créer le signalement"),
    QuickAction("💬 Parler plus", "Je veux en parler plus"),
)

DEFAULT_TEXT = """Je comprends. Y a-t-il autre chose que tu veux ajouter à ton signalement ?

💡 **Tu peux aussi** :
- Taper "résumé" pour voir tout ce que j'ai noté
- Taper "aide" pour des conseils
- Taper "modifier" pour changer une information"""

DEFAULT_ACTIONS = (
    QuickAction("✅ Créer le signalement", "Non, c'est bon, crée le signalement"),
    QuickAction("📝 Ajouter des détails", "Oui, je veux ajouter des détails"),
    QuickAction("📋 Voir le résumé", "Montre-moi le résumé"),
)

CATEGORY_NAMES: Dict[str, str] = {
    "harcelement": "🎯 Harcèlement",
    "violence": "⚠️ Violence",
    "drogue": "💊 Drogue",
    "vol": "💰 Vol/Racket",
    "arme": "🔪 Arme",
    "cyberharcelement": "💬 Cyberharcelement",
    "discrimination": "⚖️ Discrimination",
    "adulte": "👨‍🏫 Implication adulte",
    "agression_sexuelle": "🚨 Agression sexuelle",
}

URGENCY_NAMES: Dict[str, str] = {
    "critique": "🚨 CRITIQUE",
    "eleve": "⚡ ÉLEVÉE",
    "moyen": "📊 Moyen",
    "faible": "📊 Faible",
}

ADVICE: Dict[str, str] = {
    "harcelement": """💪 **CONSEILS CONTRE LE HARCÈLEMENT** :

1. **Tu n'es pas seul(e)** - Ce n'est PAS de ta faute
2. **Parles-en** - À un adulte de confiance (parent, CPE, prof)
3. **Note tout** - Dates, lieux, témoins
4. **Ne réponds pas** aux provocations
5. **Bloque** si c'est en ligne

📞 **Numéros utiles** :
- 3020 : Non au harcèlement
- 3018 : Cyberharcèlement""",
    "violence": """⚠️ **EN CAS DE VIOLENCE** :

1. **Éloigne-toi** du danger si possible
2. **Préviens un adulte** immédiatement
3. **Appelle le 17** si danger immédiat
4. **Ne reste pas seul(e)**
5. **Documente** (photos blessures si besoin)""",
    "cyberharcelement": """💬 **CONTRE LE CYBERHARCÈLEMENT** :

1. **Ne réponds pas** aux messages
2. **Bloque** l'harceleur
3. **Garde les preuves** (screenshots)
4. **Signale** sur la plateforme
5. **Parles-en** à un adulte

📱 3018 : Cyberharcèlement""",
    "agression_sexuelle": """🚨 **AGRESSION SEXUELLE** :

⚠️ **C'est TRÈS grave et ce n'est PAS de ta faute !**

1. **Tu es en sécurité maintenant ?**
2. **Appelle le 119** - Allô Enfance en Danger (gratuit, 24h/24)
3. **Parles-en** à un adulte de confiance
4. **Ne te lave pas** si récent (preuves médicales)
5. **Porter plainte** est ton droit

Tu es très courageux(se) d'en parler.""",
    "arme": """🔪 **ARME DÉTECTÉE** :

🚨 **DANGER IMMÉDIAT** :

1. **Éloigne-toi** immédiatement
2. **Appelle le 17** (Police) maintenant
3. **Préviens un adulte** rapidement
4. **Ne t'approche PAS** de l'arme
5. **Mets-toi en sécurité**

⚠️ La police doit intervenir tout de suite !""",
}

DEFAULT_ADVICE = """💡 Tu fais bien de signaler. L'école va t'aider.

N'hésite pas à demander de l'aide à un adulte de confiance."""


def welcome(assistant_name: str) -> str:
    return WELCOME_TEXT.format(assistant=assistant_name)


def acknowledge_category(category: str) -> str:
    return CATEGORY_ACKNOWLEDGEMENTS[category]


def acknowledge_location(location: str) -> str:
    return LOCATION_ACKNOWLEDGEMENT.format(location=location)


def witness_question(category: Optional[str]) -> str:
    return WITNESS_QUESTION.format(empathy=EMPATHY_MESSAGES.get(category, DEFAULT_EMPATHY))


def school_search_results(schools: Sequence[School]) -> str:
    lines = [f"🎯 J'ai trouvé {len(schools)} école(s) qui correspond(ent) :", ""]
    for index, school in enumerate(schools, start=1):
        lines.append(f"{index}. **{school.name}** (Code: {school.school_code})")
    lines.append("")
    lines.append("📋 Clique sur ton école pour continuer !")
    return "\n".join(lines)


def school_actions(schools: Sequence[School]) -> List[QuickAction]:
    return [QuickAction(f"✅ {school.name}", school.school_code) for school in schools]


def school_code_not_found(code: str) -> str:
    return SCHOOL_CODE_NOT_FOUND.format(code=code)


def contact_question(code: str, urgency: str) -> str:
    gravity = "URGENTE" if urgency == "critique" else "importante"
    return CONTACT_QUESTION.format(code=code, gravity=gravity)


def report_created(report_code: str, access_code: str) -> str:
    return REPORT_CREATED_TEXT.format(report_code=report_code, access_code=access_code)


def already_created(report_code: str) -> str:
    return ALREADY_CREATED_TEXT.format(report_code=report_code)


def advice(category: Optional[str]) -> str:
    return ADVICE.get(category, DEFAULT_ADVICE)


def summary(context, description_length: int = 100) -> str:
    """Recap of what has been collected so far."""
    lines = ["📋 **RÉSUMÉ DE TON SIGNALEMENT**", ""]

    if context.category:
        lines.append(f"**Type** : {CATEGORY_NAMES.get(context.category, context.category)}")
    if context.urgency:
        lines.append(f"**Urgence** : {URGENCY_NAMES.get(context.urgency, context.urgency)}")
    if context.location:
        lines.append(f"**Lieu** : {context.location}")
    if context.description:
        description = context.description[:description_length]
        if len(context.description) > description_length:
            description += "..."
        lines.append(f"**Description** : {description}")
    if context.witnesses:
        lines.append(f"**Témoins** : {context.witnesses}")
    if context.school_code:
        lines.append(f"**École** : {context.school_code}")

    lines.append("")
    lines.append("✅ Tout est correct ?")
    return "\n".join(lines)

class Translator:
    def __init__(self) -> None:
        self.language = "es"
        self.translations = {
            "en": {},
            "es": {
                "Chest": "Pecho",
                "Back": "Espalda",
                "Legs": "Pierna",
                "Shoulders": "Hombro",
                "Arms": "Brazos",
                "Core": "Core",
                "Cardio": "Cardio",
                "Other": "Otro",
                "Rest finished!": "¡Descanso Terminado!",
                "Time for the next set.": "Es hora del siguiente set.",
                "Classic": "Clásico",
                "Zen": "Zen",
                "Coach": "Entrenador",
                "Future": "Futuro",
            },
        }
        self.month_names = {
            "en": [
                "January",
                "February",
                "March",
                "April",
                "May",
                "June",
                "July",
                "August",
                "September",
                "October",
                "November",
                "December",
            ],
            "es": [
                "enero",
                "febrero",
                "marzo",
                "abril",
                "mayo",
                "junio",
                "julio",
                "agosto",
                "septiembre",
                "octubre",
                "noviembre",
                "diciembre",
            ],
        }

    def set_language(self, lang: str) -> None:
        self.language = lang

    def gettext(self, key: str, language: str | None = None) -> str:
        lang = language or self.language
        return self.translations.get(lang, {}).get(key, key)

    def month_label(self, year: int, month: int, language: str | None = None) -> str:
        """Return a wide month plus year label such as ``enero de 2024``."""
        lang = language or self.language
        names = self.month_names.get(lang, self.month_names["en"])
        name = names[month - 1]
        if lang == "es":
            return f"{name} de {year}"
        return f"{name} {year}"


translator = Translator()

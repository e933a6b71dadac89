"""Error taxonomy shared by the scan pipeline and the UI.

Each error carries the status message shown to the user. Extraction and
number parsing never raise; only the injection and storage boundaries do,
plus the classification of an empty or unreadable scan.
"""


class ScanError(Exception):
    """Base class for failures that end a scan with a status message."""

    message = "Erreur pendant le scan."

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail


class NotFoundError(ScanError):
    message = "Aucune moyenne trouvée. Va sur Pronote > Notes/Moyennes, puis rescane."


class UnparseableDataError(ScanError):
    message = "J’ai trouvé des matières, mais les nombres n’étaient pas lisibles."


class InjectionRefusedError(ScanError):
    message = (
        "Erreur pendant le scan. "
        "(Pronote a peut-être bloqué l’injection sur cette page)"
    )


class StorageError(Exception):
    """The coefficient store could not be read or written."""

    message = "Impossible de lire ou d’enregistrer les coefficients."

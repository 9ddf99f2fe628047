

### COMMENTS
# ============================================
# Konwencja użycia błędów domenowych w projekcie
# ============================================
# - Encje (Task, User):
#     * walidują pola przy konstrukcji i w mutatorach -> ValidationError
#
# - Repozytoria:
#     * wykrywają duplikaty (id, username, email) -> DuplicateError
#     * brak rekordu przy odczycie/usuwaniu to None/False, NIE wyjątek
#     * logują błąd raz (w miejscu powstania) i rzucają dalej
#
# - Serwisy:
#     * brak encji, do której odwołuje się nowy rekord -> MissingReferenceError
#     * publikują zdarzenie ErrorOccurred i rzucają dalej
#
# - Kontroler:
#     * brak uprawnień -> PermissionDeniedError
#     * brak zadania, na którym operujemy -> NotFoundError
#     * jedyne miejsce, które zamienia błąd na zdarzenie dla UI (i nadal go rzuca)


class DomainError(Exception):
    """Bazowa klasa dla błędów domenowych.
    Umożliwia odróżnienie błędów domeny (logika aplikacji) od błędów technicznych
    (np. problemów z bazą danych, I/O).
    Nie powinna być rzucana bezpośrednio poza adapterami: używaj klas pochodnych.
    """


class ValidationError(DomainError):
    """Rzucany, gdy dane wejściowe nie spełniają reguł encji.
    Przykłady:
    - tytuł zadania jest pusty,
    - priorytet lub status spoza zamkniętego zestawu wartości,
    - ujemna liczba godzin, niepoprawny email.
    Zawiera nazwę pola (`field`) i czytelny komunikat (`message`).
    """
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(self.__str__())
    def __str__(self):
        return f"Błąd walidacji pola '{self.field}': {self.message}"


class DuplicateError(DomainError):
    """Rzucany przy kolizji klucza unikalnego (id, username, email) w kolekcji."""
    def __init__(self, entity: str, field: str, value: str):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(self.__str__())
    def __str__(self):
        return f"{self.entity} z {self.field}={self.value!r} juz istnieje."


class NotFoundError(DomainError):
    """Rzucany, gdy operacja wymaga istniejącej encji, a jej nie ma.
    Repozytoria nie rzucają go przy odczycie (zwracają None): robi to warstwa wyżej.
    """
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"{self.entity} o ID {self.entity_id} nie istnieje."


class MissingReferenceError(DomainError):
    """Rzucany, gdy encja odwołuje się do innej encji, której nie ma
    (np. zadanie z właścicielem, który nie istnieje)."""
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"Powiązany rekord {self.entity} o ID {self.entity_id} nie istnieje."


class PermissionDeniedError(DomainError):
    """Rzucany przez kontroler, gdy bieżący użytkownik nie może wykonać operacji."""
    def __init__(self, action: str, user_id: str | None, task_id: str | None = None):
        self.action = action
        self.user_id = user_id
        self.task_id = task_id
        super().__init__(self.__str__())
    def __str__(self):
        target = f" zadania {self.task_id}" if self.task_id else ""
        return f"Brak uprawnień: użytkownik {self.user_id} nie może wykonać '{self.action}'{target}."

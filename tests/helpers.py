"""Form payloads and a controllable clock for tests."""

VALID_FIELDS = {
    "student_name": "Ana María Pérez",
    "grade": "5º A",
    "address": "Calle 10 # 20-30",
    "municipio": "Medellín",
    "sector": "El Poblado",
    "urbanizacion": "Los Balsos",
    "bloque": "Torre 2, apto 301",
    "father_name": "Carlos Pérez",
    "father_phone": "+57 300 123 4567",
    "father_office_phone": "(604) 444-5555",
    "father_email": "carlos.perez@example.com",
    "mother_name": "Lucía Gómez",
    "mother_phone": "310.555.1234",
    "mother_office_phone": "604 555 0000",
    "mother_email": "lucia@example.co",
    "other_guardian": "Rosa Gómez",
    "other_guardian_phone": "3125550101",
    "responsible_id": "CC-1.020.304",
    "observaciones": "Alergia al maní.",
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_form(**overrides) -> dict[str, list[str]]:
    """Valid form payload as name -> list of values; None removes a field."""
    form = {name: [value] for name, value in VALID_FIELDS.items()}
    form["service_options"] = ["AM"]
    for name, value in overrides.items():
        if value is None:
            form.pop(name, None)
        elif isinstance(value, list):
            form[name] = value
        else:
            form[name] = [value]
    return form

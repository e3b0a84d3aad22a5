"""
Tests for src/personalizer_api/client_fields.py

Coverage
--------
- extract_client_fields  (Spanish/English labels, bullets, first value wins)
- apply_placeholder_fields  (defaults, spacing inside braces, escaping)
"""

from personalizer_api.client_fields import (
    ClientFields,
    apply_placeholder_fields,
    extract_client_fields,
)

_PROMPT = """Propuesta para un cliente nuevo.
Nombre: Laura Gómez
Empresa: Acme Motors
- Objetivos: Duplicar las ventas online
* Alcance: Web + campaña
Timeline: 8 semanas
Equipo: 4 personas
Precio: 12.000 €
"""


class TestExtractClientFields:
    def test_spanish_labels(self):
        fields = extract_client_fields(_PROMPT)
        assert fields.name == "Laura Gómez"
        assert fields.company == "Acme Motors"
        assert fields.objectives == "Duplicar las ventas online"
        assert fields.scope == "Web + campaña"
        assert fields.timeline == "8 semanas"
        assert fields.team == "4 personas"
        assert fields.price == "12.000 €"

    def test_english_labels_case_insensitive(self):
        fields = extract_client_fields("COMPANY: Initech\nbudget = 5k")
        assert fields.company == "Initech"
        assert fields.price == "5k"

    def test_first_value_wins(self):
        fields = extract_client_fields("Empresa: Uno\nCompany: Dos")
        assert fields.company == "Uno"

    def test_free_text_has_no_fields(self):
        fields = extract_client_fields("Haz una propuesta para una tienda de bicicletas en Madrid")
        assert fields.is_empty()

    def test_empty_prompt(self):
        assert extract_client_fields("").is_empty()

    def test_to_dict_drops_missing(self):
        assert ClientFields(name="Ana").to_dict() == {"name": "Ana"}


class TestApplyPlaceholderFields:
    def test_fills_known_fields(self):
        html = "<h1>{{cliente.nombre}}</h1><p>{{ cliente.empresa }}</p>"
        result = apply_placeholder_fields(html, ClientFields(name="Ana", company="Acme"))
        assert result == "<h1>Ana</h1><p>Acme</p>"

    def test_defaults(self):
        html = "<h1>{{cliente.nombre}}</h1><p>{{cliente.precio}}</p>"
        assert apply_placeholder_fields(html, ClientFields()) == "<h1>Cliente</h1><p></p>"

    def test_replacement_is_literal(self):
        result = apply_placeholder_fields("{{cliente.empresa}}", ClientFields(company=r"A\1 & B"))
        assert result == r"A\1 &amp; B"

    def test_values_are_html_escaped(self):
        fields = extract_client_fields("Nombre: <script>alert(1)</script>")
        result = apply_placeholder_fields("<h1>Hola {{cliente.nombre}}</h1>", fields)
        assert result == "<h1>Hola &lt;script&gt;alert(1)&lt;/script&gt;</h1>"

    def test_quotes_escaped_for_attributes(self):
        html = '<meta content="{{cliente.empresa}}">'
        result = apply_placeholder_fields(html, ClientFields(company='Acme" onload="x'))
        assert result == '<meta content="Acme&quot; onload=&quot;x">'

    def test_other_text_untouched(self):
        html = "<p>{{otro.campo}}</p>"
        assert apply_placeholder_fields(html, ClientFields(name="Ana")) == html

from app.core.form_visibility import is_visible, prune_hidden_answers, set_answer, visible_fields
from app.schemas.forms import FieldConditional, FormField


COUNTRY = FormField(type="select", label="Country", key="country", options=["US", "UK"])
VISA = FormField(label="Visa number", key="visa", conditional=FieldConditional(field_key="country", option="UK"))
NAME = FormField(label="Name", key="name")
FIELDS = [NAME, COUNTRY, VISA]


def _visible_keys(answers):
    return [f.key for f in visible_fields(FIELDS, answers)]


def test_unconditional_fields_always_visible():
    assert is_visible(NAME, [], {})
    assert _visible_keys({}) == ["name", "country"]


def test_dependent_visible_only_on_exact_option():
    assert _visible_keys({"country": "UK"}) == ["name", "country", "visa"]
    assert _visible_keys({"country": "US"}) == ["name", "country"]
    assert _visible_keys({"country": "uk"}) == ["name", "country"]
    assert _visible_keys({"country": ["UK"]}) == ["name", "country"]


def test_parent_must_come_earlier():
    assert not is_visible(VISA, [NAME], {"country": "UK"})
    assert [f.key for f in visible_fields([VISA, COUNTRY], {"country": "UK"})] == ["country"]


def test_changing_parent_discards_dependent_answer():
    answers = {"name": "Ada", "country": "UK"}
    answers = set_answer(FIELDS, answers, "visa", "X123")
    assert answers == {"name": "Ada", "country": "UK", "visa": "X123"}

    answers = set_answer(FIELDS, answers, "country", "US")
    assert answers == {"name": "Ada", "country": "US"}

    # switching back does not resurrect the stale answer
    answers = set_answer(FIELDS, answers, "country", "UK")
    assert "visa" not in answers


def test_prune_is_pure():
    answers = {"country": "US", "visa": "X123", "unknown": 1}
    pruned = prune_hidden_answers(FIELDS, answers)

    assert pruned == {"country": "US", "unknown": 1}
    assert answers == {"country": "US", "visa": "X123", "unknown": 1}


def test_hidden_parent_hides_its_dependents():
    region = FormField(
        type="select",
        label="Region",
        key="region",
        options=["London", "Elsewhere"],
        conditional=FieldConditional(field_key="country", option="UK"),
    )
    borough = FormField(label="Borough", key="borough", conditional=FieldConditional(field_key="region", option="London"))
    fields = [COUNTRY, region, borough]

    answers = {"country": "US", "region": "London", "borough": "Camden"}
    assert prune_hidden_answers(fields, answers) == {"country": "US"}
    assert [f.key for f in visible_fields(fields, answers)] == ["country"]

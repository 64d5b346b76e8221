import re

import pytest

from emotions import EmotionModel, Frame, PortraitSelection
from renpy_script import (
    CompositeImage,
    EyesAnimation,
    MouthAnimation,
    ScriptCharacter,
    format_duration,
    generate_script,
    plan_emotion,
    render_block,
    script_filename,
)

BASE = "portrait_output/100001/100001_base.png"


@pytest.fixture
def character():
    return ScriptCharacter(character_id="100001", display_name="Hero (Summer)", base_path=BASE, offset=(10, 20))


def build_model(*entries):
    model = EmotionModel()
    for name, closed, opened in entries:
        h = model.add_emotion()
        model.rename_emotion(h, name)
        model.capture_frame(h, 0, PortraitSelection(face_path=closed[0], mouth_path=closed[1]))
        model.capture_frame(h, 1, PortraitSelection(face_path=opened[0], mouth_path=opened[1]))
    return model


def test_lipflap_only_script_layout(character):
    model = build_model(("Talk", ("a.png", "x.png"), ("a.png", "y.png")))
    expected = (
        "# Character: Hero (Summer)\n"
        "# Remember to include portrait_data/100001 from https://github.com/sh0wer1ee/DLPortraits "
        "in the portrait_data folder in the Ren'Py project\n"
        f"# Base image: {BASE}\n"
        "# Image tag: hero_summer\n"
        "\n"
        "image hero_summer talk = Composite(\n"
        "    (1024, 1024),\n"
        f'    (0, 0), "{BASE}",\n'
        '    (10, 20), "a.png",\n'
        '    (10, 20), WhileSpeaking("hero_summer", "hero_summer mouth talk", "x.png"),\n'
        ")\n"
        "\n"
        "image hero_summer mouth talk:\n"
        '    "y.png"\n'
        "    .2\n"
        '    "x.png"\n'
        "    .2\n"
        "    repeat\n"
    )
    assert generate_script(character, model) == expected


def test_blink_block_uses_fixed_hold_choices(character):
    model = build_model(("Smile", ("open.png", "m.png"), ("shut.png", "m.png")))
    text = generate_script(character, model)
    assert 'image hero_summer smile = Composite(' in text
    assert '(10, 20), "hero_summer eyes smile",' in text
    assert '(10, 20), "m.png",' in text
    assert "WhileSpeaking" not in text
    eyes = text.split("image hero_summer eyes smile:\n", 1)[1]
    assert eyes.startswith('    "open.png"\n')
    holds = re.findall(r"    choice:\n        ([\d.]+)\n", eyes)
    assert holds == ["4.5", "3.5", "1.5"]
    assert '    "shut.png"\n    .25\n    repeat' in eyes


def test_static_emotion_has_no_auxiliary_blocks(character):
    model = build_model(("Neutral", ("a.png", "x.png"), ("", "")))
    blocks = plan_emotion(character, model[0])
    assert len(blocks) == 1
    composite = blocks[0]
    assert isinstance(composite, CompositeImage)
    assert composite.face == "a.png" and not composite.face_is_image
    assert composite.mouth_speaking is None
    text = generate_script(character, model)
    assert "eyes neutral" not in text
    assert "mouth neutral" not in text


def test_plan_with_both_flags(character):
    model = build_model(("Angry (Loud)", ("a.png", "x.png"), ("b.png", "y.png")))
    blocks = plan_emotion(character, model[0])
    assert [type(b) for b in blocks] == [CompositeImage, EyesAnimation, MouthAnimation]
    assert blocks[0].image_name == "hero_summer angry_loud"
    assert blocks[1] == EyesAnimation("hero_summer eyes angry_loud", "a.png", "b.png")
    assert blocks[2] == MouthAnimation("hero_summer mouth angry_loud", "y.png", "x.png")


def test_empty_paths_propagate_verbatim(character):
    model = EmotionModel()
    model.add_emotion()
    text = generate_script(character, model)
    assert 'image hero_summer undefined_0 = Composite(' in text
    assert '(10, 20), "",\n' in text
    assert text.count('(10, 20), "",') == 2


def test_composite_parentheses_balanced(character):
    model = build_model(
        ("Static", ("a.png", "x.png"), ("a.png", "x.png")),
        ("Talk", ("a.png", "x.png"), ("a.png", "y.png")),
    )
    for block in plan_emotion(character, model[0]) + plan_emotion(character, model[1]):
        rendered = render_block(block)
        assert rendered.count("(") == rendered.count(")")


def test_script_is_deterministic(character):
    model = build_model(
        ("One", ("a.png", "x.png"), ("b.png", "y.png")),
        ("Two", ("c.png", "x.png"), ("", "")),
    )
    assert generate_script(character, model) == generate_script(character, model)


def test_emotion_order_follows_model_after_pop(character):
    model = build_model(
        ("First", ("a.png", ""), ("", "")),
        ("Second", ("a.png", ""), ("", "")),
        ("Third", ("a.png", ""), ("", "")),
    )
    model.remove_last()
    text = generate_script(character, model)
    names = re.findall(r"^image hero_summer (\w+) = Composite", text, re.MULTILINE)
    assert names == ["first", "second"]


def test_duplicate_tokens_are_not_renamed(character):
    model = build_model(
        ("Happy (Soft)", ("a.png", ""), ("", "")),
        ("happy soft", ("b.png", ""), ("", "")),
    )
    text = generate_script(character, model)
    assert text.count("image hero_summer happy_soft = Composite(") == 2


def test_quotes_in_paths_are_escaped(character):
    model = build_model(('Odd', ('we"ird.png', "x.png"), ("", "")))
    assert '"we\\"ird.png"' in generate_script(character, model)


def test_warns_when_frames_came_from_another_character(character, capsys):
    model = EmotionModel()
    h = model.add_emotion()
    model.capture_frame(h, 0, PortraitSelection(character_id="999999", face_path="a.png"))
    generate_script(character, model)
    assert "Warning: emotion 'undefined_0'" in capsys.readouterr().out


def test_no_warning_for_matching_character(character, capsys):
    model = EmotionModel()
    h = model.add_emotion()
    model.capture_frame(h, 0, PortraitSelection(character_id="100001", face_path="a.png"))
    generate_script(character, model)
    assert "Warning" not in capsys.readouterr().out


def test_script_filename(character):
    assert script_filename(character) == "hero_summer.rpy"


@pytest.mark.parametrize("seconds,text", [(4.5, "4.5"), (0.25, ".25"), (0.2, ".2"), (1.0, "1")])
def test_format_duration(seconds, text):
    assert format_duration(seconds) == text


def test_weighted_choice_renders_weight():
    block = EyesAnimation("c eyes t", "a.png", "b.png", hold_choices=((4.5, 2.0), (1.5, 1.0)))
    rendered = render_block(block)
    assert "    choice 2:\n        4.5" in rendered
    assert "    choice:\n        1.5" in rendered


def test_render_block_rejects_unknown():
    with pytest.raises(TypeError):
        render_block(Frame())


def test_header_carries_character_token(character):
    header = generate_script(character, EmotionModel()).splitlines()
    assert header[3] == "# Image tag: hero_summer"

import random

from influencore.services import script_generator, storage, video_generator


def test_generate_title():
    assert script_generator.generate_title("the best organic dog food ever") == "Best Organic Food Script"


def test_unknown_tone_falls_back_to_professional():
    script = script_generator.write_script("gardening", "dramatic", 200)
    assert script.startswith("Welcome to our innovative solution for gardening")


def test_script_trimmed_to_max_words():
    script = script_generator.write_script("gardening", "casual", 10)
    assert script.endswith("...")
    assert script_generator.count_words(script) == 10


def test_estimate_duration():
    # 160 words per minute
    assert script_generator.estimate_duration(" ".join(["word"] * 160)) == 60
    assert script_generator.estimate_duration("one two three") == 2


def test_parse_structure():
    structure = script_generator.parse_structure("Hello there. This is the body! And more? The end.")
    assert structure["introduction"] == "Hello there"
    assert structure["conclusion"].strip() == "The end"
    assert "This is the body" in structure["body"]


def test_demo_script_limits():
    script = script_generator.generate_demo_script("a very long prompt about coffee", tone="humorous")
    assert script["is_demo"] is True
    assert script["metadata"]["model"] == "fallback"
    assert len(script["limitations"]) == 3


def test_demo_video_merges_options():
    video = video_generator.generate_demo_video("launch", {"mood": "calm"}, rng=random.Random(1))
    assert video["prompt"] == "launch"
    assert video["mood"] == "calm"
    assert 10 <= video["processing_time"] <= 39
    assert video["url"] in [demo["url"] for demo in video_generator.DEMO_VIDEOS]


def test_generate_file_key():
    key = storage.generate_file_key("user-1", "avatars", "/tmp/My Photo (1).jpg")
    prefix, name = key.rsplit("/", 1)
    assert prefix == "avatars/user-1"
    assert name.endswith("_My_Photo__1_.jpg")


def test_script_templates_follow_template_layout():
    templates = script_generator.script_templates()
    assert [template["category"] for template in templates] == ["marketing", "entertainment", "educational"]
    for template in templates:
        layout = script_generator.TEMPLATES[template["category"]]
        assert template["structure"] == layout["structure"]
        assert template["max_words"] == layout["max_words"]
        assert template["content"] in script_generator.SUGGESTIONS

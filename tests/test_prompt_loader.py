from filmchat.prompt_loader import PromptLibrary, read_prompt


def test_read_prompt_strips_bom(tmp_path):
    path = tmp_path / "p.txt"
    path.write_bytes("\ufeffHello {name}".encode("utf-8"))
    assert read_prompt(path) == "Hello {name}"


def test_render_fills_placeholders_and_caches(tmp_path):
    path = tmp_path / "greet.txt"
    path.write_text("Hi {name}!\n", encoding="utf-8")
    library = PromptLibrary(tmp_path)
    assert library.render("greet.txt", name="Sam") == "Hi Sam!"

    path.write_text("changed", encoding="utf-8")
    assert library.load("greet.txt") == "Hi {name}!\n"

import pytest

from magicl10n.translation import composer


def test_generate_puts_base_first_and_new_files_next_to_it(manifest):
    manifest["languages"].append({"lang": "de", "name": "Deutsch", "path": "lang/de.json"})
    translated = {"fr": {"a": "A"}, "cn": {"a": "A"}, "pt-BR": {"a": "A"}}

    block = composer.to_manifest_block(composer.generate(manifest, translated))

    assert block == [
        {"lang": "en", "name": "English", "path": "lang/en.json"},
        {"lang": "de", "name": "Deutsch", "path": "lang/de.json"},
        {"lang": "fr", "name": "Français", "path": "lang/fr.json"},
        {"lang": "cn", "name": "中文 (Chinese)", "path": "lang/cn.json"},
        {"lang": "pt-BR", "name": "Português (Brasil)", "path": "lang/pt-BR.json"},
    ]


def test_generate_handles_base_file_at_package_root():
    manifest = {"languages": [{"lang": "en", "name": "English", "path": "en.json"}]}

    descriptors = composer.generate(manifest, {"zh-tw": {"a": "A"}})

    assert descriptors[1].relative_source_path == "zh-tw.json"


def test_generate_raises_for_unknown_language(manifest):
    with pytest.raises(LookupError):
        composer.generate(manifest, {"xx": {"a": "A"}})


def test_generate_raises_without_base_descriptor():
    with pytest.raises(LookupError):
        composer.generate({"languages": [{"lang": "fr", "path": "fr.json"}]}, {"de": {}})

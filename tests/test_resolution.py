from fluid_images.resolution import (
    build_image_ref,
    find_file,
    is_eligible,
    is_relative_url,
    parse_image_url,
    resolve_file,
    resolve_image_path,
    resolve_reference,
)
from fluid_images.service import FileRecord
from fluid_images.tree import Node, NodeKind, build_definitions


def test_parse_image_url_splits_query_and_extension():
    info = parse_image_url("images/cat.JPG?width=200#top")

    assert info.url == "images/cat.JPG"
    assert info.query == "width=200"
    assert info.ext == "jpg"


def test_parse_image_url_without_extension():
    assert parse_image_url("images/cat").ext == ""
    assert parse_image_url("images.d/cat").ext == ""


def test_relative_urls():
    assert is_relative_url("images/cat.jpg")
    assert is_relative_url("../media/cat.jpg")
    assert is_relative_url("/media/cat.jpg")
    assert not is_relative_url("https://example.com/cat.jpg")
    assert not is_relative_url("data:image/png;base64,AAAA")


def test_gif_svg_and_external_are_not_eligible():
    assert is_eligible("images/cat.jpg")
    assert not is_eligible("images/anim.gif")
    assert not is_eligible("images/logo.svg?v=2")
    assert not is_eligible("https://example.com/cat.jpg")
    assert not is_eligible("")
    assert not is_eligible(None)


def test_reference_resolves_to_definition_with_alt_override():
    definition = Node(NodeKind.DEFINITION, identifier="cat", url="images/cat.jpg", title="Cat")
    ref = Node(NodeKind.IMAGE_REFERENCE, identifier="CAT", alt="A cat")
    definitions = build_definitions(Node(NodeKind.ROOT, children=[definition]))

    target, overrides = resolve_reference(ref, definitions)

    assert target is definition
    assert overrides == {"alt": "A cat"}


def test_dangling_reference_resolves_to_none():
    ref = Node(NodeKind.IMAGE_REFERENCE, identifier="nope", alt="x")
    definitions = build_definitions(Node(NodeKind.ROOT))

    assert resolve_reference(ref, definitions) is None
    assert build_image_ref(ref, definitions) is None


def test_build_image_ref_skips_ineligible_definition():
    definition = Node(NodeKind.DEFINITION, identifier="logo", url="images/logo.svg")
    ref = Node(NodeKind.IMAGE_REFERENCE, identifier="logo")
    definitions = build_definitions(Node(NodeKind.ROOT, children=[definition]))

    assert build_image_ref(ref, definitions) is None


def test_resolve_image_path_joins_and_normalises():
    assert resolve_image_path("/site/content/articles", "../media/goblin.jpg") == "/site/content/media/goblin.jpg"
    assert resolve_image_path("/site/content/articles/", "images/my%20cat.jpg") == "/site/content/articles/images/my cat.jpg"
    assert resolve_image_path("C:\\site\\articles", "images/cat.jpg") == "C:/site/articles/images/cat.jpg"


def test_find_file_requires_exact_match():
    files = [FileRecord("/a/cat.jpg"), FileRecord("/a/dog.jpg")]

    assert find_file(files, "/a/dog.jpg") is files[1]
    assert find_file(files, "/a/DOG.jpg") is None


def test_resolve_file_without_parent_dir_is_a_skip(files):
    ref = build_image_ref(Node(NodeKind.IMAGE, url="images/cat.jpg"), build_definitions(Node(NodeKind.ROOT)))

    assert resolve_file(ref, None, files) is None


def test_resolve_file_uses_parent_dir(files, doc_dir):
    ref = build_image_ref(Node(NodeKind.IMAGE, url="images/cat.jpg?x=1"), build_definitions(Node(NodeKind.ROOT)))

    file = resolve_file(ref, doc_dir, files)

    assert file.absolute_path == f"{doc_dir}/images/cat.jpg"
    assert ref.url == "images/cat.jpg"
    assert ref.query == "x=1"

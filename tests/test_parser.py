import asyncio

from medialink.parser import MediaParser


def test_classifies_episode():
    parser = MediaParser()
    path = "Show.Name.S01E02.1080p.WEB-DL.mkv"

    assert asyncio.run(parser.classify_type(path)) == "series"

    meta = asyncio.run(parser.extract_metadata(path, "series"))
    assert meta["title"] == "Show Name"
    assert meta["season"] == 1
    assert meta["episode"] == 2
    assert meta["quality"] == "1080p"
    assert meta["type"] == "series"


def test_classifies_movie():
    parser = MediaParser()
    path = "The.Matrix.1999.720p.BluRay.x264.mkv"

    assert asyncio.run(parser.classify_type(path)) == "movie"

    meta = asyncio.run(parser.extract_metadata(path, "movie"))
    assert meta["title"] == "The Matrix"
    assert meta["year"] == 1999
    assert meta["quality"] == "720p"
    assert "season" not in meta


def test_missing_fields_are_absent():
    meta = asyncio.run(MediaParser().extract_metadata("Some.Movie.mkv", "movie"))
    assert "quality" not in meta
    assert "year" not in meta

"""Module-level convenience functions backed by the default loader."""

import countrydata
from countrydata import CountryLoader, DatasetCache, DirectorySource


class TestDefaultLoader:
    """configure / reset_default_loader lifecycle."""

    def test_configure_with_loader(self, loader):
        assert countrydata.configure(loader) is loader

        assert countrydata.country("gb").capital == "London"
        assert list(countrydata.countries()) == ["us", "gb"]
        assert countrydata.currencies(longlist=True)["EUR"]["iso_4217_name"] == "Euro"
        assert len(countrydata.cities("us")) == 5
        assert countrydata.resolve_coordinates(51.5, -0.12).city == "London"
        assert countrydata.find_city("new", "us").name == "New York"

    def test_configure_with_config_file(self, resource_root, tmp_path):
        config = tmp_path / "countrydata.yaml"
        config.write_text(
            f"source:\n  root: {resource_root.as_posix()}\ngeo:\n  candidate_countries: [IE, GB]\n",
            encoding="utf-8",
        )

        countrydata.configure(config=config)

        assert countrydata.resolve_coordinates(53.35, -6.26).country_code == "IE"

    def test_default_reads_cwd_resources(self, resource_root, monkeypatch):
        monkeypatch.chdir(resource_root.parent)

        assert countrydata.country("ie", hydrate=False)["iso_3166_1_alpha3"] == "IRL"

    def test_reset_drops_cache(self, resource_root):
        first_cache = DatasetCache()
        countrydata.configure(CountryLoader(DirectorySource(resource_root), cache=first_cache))
        countrydata.country("us")

        countrydata.reset_default_loader()
        countrydata.configure(CountryLoader(DirectorySource(resource_root)))

        assert countrydata.default_loader().cache is not first_cache
        assert "country:us" in first_cache

    def test_filter_countries(self, loader):
        countrydata.configure(loader)
        records = countrydata.countries(longlist=True, hydrate=True)

        matches = countrydata.filter_countries(records, "region", "!=", "Europe")

        assert [c.iso_alpha2 for c in matches] == ["US"]

"""
Development corpus of climate/energy research documents.

A handful of research summaries plus the kind of scraped institutional
navigation pages the ranking filters must keep out of the results. In
production the corpus lives in Postgres and is embedded elsewhere.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from climate_rag.retrieval.document import Document

if TYPE_CHECKING:
    from climate_rag.retrieval.store import InMemoryVectorLookup


def get_research_documents() -> list[Document]:
    """Research documents (the ones that should surface as sources)."""
    return [
        Document(
            id="doc_beccs_overview",
            title="BECCS Research Overview",
            content="""Bioenergy with carbon capture and storage (BECCS) combines biomass
combustion with capture of the resulting carbon dioxide. Because the biomass
absorbed CO2 while growing, storing the captured CO2 underground gives
negative emissions. Research groups at KTH study capture efficiency, the
energy penalty of capture in combined heat and power plants, and how BECCS
fits into Sweden's net zero target for 2045.""",
            author="Anna Lindqvist, Erik Johansson",
            department="Energy Technology",
            category="Carbon capture",
            year=2024,
            url="https://www.kth.se/energy/beccs-overview",
            metadata={"kth_research": True, "peer_reviewed": False},
        ),
        Document(
            id="doc_beccs_exergi",
            title="BECCS at Stockholm Exergi: Full-Scale Capture Project",
            content="""Stockholm Exergi is building a full-scale BECCS facility at its
Värtaverket biomass CHP plant, designed to capture 800,000 tonnes of CO2 per
year. KTH researchers assessed the hot potassium carbonate capture process,
heat recovery into the district heating network and the life-cycle climate
impact of the project.""",
            author="Maria Svensson",
            department="Chemical Engineering",
            category="Carbon capture",
            year=2023,
            url="https://www.kth.se/che/beccs-stockholm-exergi",
            doi="10.1016/j.ijggc.2023.103912",
            metadata={"kth_research": True, "peer_reviewed": True},
        ),
        Document(
            id="doc_district_heating",
            title="Heat Pumps in Swedish District Heating",
            content="""Large heat pumps supply a growing share of district heating in
Stockholm, using sewage water and sea water as heat sources. This study
models the interaction between heat pump operation, electricity prices and
thermal storage, and estimates the emission reductions from replacing
fossil peak boilers.""",
            author="Lars Nilsson",
            department="Energy Technology",
            category="District heating",
            year=2021,
            url="https://www.kth.se/energy/heat-pumps-district-heating",
            metadata={"kth_research": True, "peer_reviewed": True},
        ),
        Document(
            id="doc_offshore_wind",
            title="Offshore Wind Integration in the Baltic Sea",
            content="""Offshore wind farms in the Baltic Sea could supply a large share of
Swedish electricity demand by 2040. The project analyses grid connection
options, curtailment under high wind output and the role of hydrogen
production as flexible demand.""",
            author="Sofia Berg",
            department="Electric Power and Energy Systems",
            category="Wind energy",
            year=2022,
            url="https://www.kth.se/eps/offshore-wind-baltic",
            metadata={"kth_research": True, "peer_reviewed": True},
        ),
        Document(
            id="doc_hydrogen_steel",
            title="Fossil-Free Steel with Green Hydrogen",
            content="""Replacing coal with hydrogen in iron ore reduction could cut Swedish
CO2 emissions by roughly ten percent. This analysis covers electrolyser
sizing, hydrogen storage and the electricity system impact of hydrogen
direct reduction at industrial scale.""",
            author="Johan Ek",
            department="Materials Science and Engineering",
            category="Hydrogen",
            year=2020,
            url="https://www.kth.se/mse/fossil-free-steel-hydrogen",
            metadata={"kth_research": True, "peer_reviewed": True},
        ),
        Document(
            id="doc_solar_urban",
            title="Urban Solar Photovoltaic Potential in Stockholm",
            content="""Rooftop photovoltaic systems could cover a considerable share of
residential electricity demand in Stockholm. The study maps roof areas,
shading and self-consumption with battery storage, and discusses the
seasonal mismatch between solar output and heating demand.""",
            author="Elin Holm",
            department="Sustainable Development, Environmental Science and Engineering",
            category="Solar energy",
            year=2015,
            url="https://www.kth.se/seed/urban-solar-stockholm",
            metadata={"kth_research": True, "peer_reviewed": True},
        ),
    ]


def get_generic_pages() -> list[Document]:
    """Navigation/landing pages scraped alongside the research content."""
    return [
        Document(
            id="page_research",
            title="Research | KTH",
            content="Research at KTH covers energy, climate, carbon capture and many other areas.",
            url="https://www.kth.se/research",
        ),
        Document(
            id="page_school_abe",
            title="School of Architecture and the Built Environment | KTH",
            content="The school conducts research on sustainable cities, energy and climate.",
            url="https://www.kth.se/abe",
        ),
        Document(
            id="page_news",
            title="News from KTH | KTH",
            content="Latest news about climate research, energy projects and BECCS.",
            url="https://www.kth.se/news",
        ),
    ]


def get_seed_documents() -> list[Document]:
    return get_research_documents() + get_generic_pages()


def seed_lookup(lookup: InMemoryVectorLookup) -> None:
    """
    Load the development corpus into an in-memory lookup.

    Documents are embedded by the lookup's own provider, which must be the
    provider used for queries.
    """
    lookup.insert_documents_batch(get_seed_documents())

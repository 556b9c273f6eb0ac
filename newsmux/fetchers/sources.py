"""
RSS source table: country -> category -> [(source name, feed URL)].

The "global" country holds the international feeds used for the global tier.
"""
from typing import Dict, List, Optional, Tuple

from newsmux.core.categories import NewsCategory

FeedList = List[Tuple[str, str]]

GLOBAL = "global"

ITALIAN_SOURCES: Dict[NewsCategory, FeedList] = {
    NewsCategory.GENERAL: [
        ("Il Sole 24 Ore Finanza", "https://www.ilsole24ore.com/rss/finanza-personale.xml"),
        ("Altroconsumo", "https://www.altroconsumo.it/rss/news.xml"),
        ("Idealista", "https://www.idealista.it/news/rss"),
        ("Immobiliare.it", "https://www.immobiliare.it/news/rss/"),
        ("Codacons", "https://www.codacons.it/feed/"),
        ("Adnkronos Economia", "https://www.adnkronos.com/rss/economia.xml"),
        ("Vanity Fair Italia", "https://www.vanityfair.it/feed"),
        ("ANSA Lifestyle", "https://www.ansa.it/canale_lifestyle/notizie/lifestyle_rss.xml"),
    ],
    NewsCategory.POLITICS: [
        ("ANSA", "https://www.ansa.it/sito/notizie/politica/politica_rss.xml"),
        ("La Repubblica", "https://www.repubblica.it/rss/politica/rss2.0.xml"),
        ("Corriere della Sera", "https://xml2.corriereobjects.it/rss/politica.xml"),
        ("Il Sole 24 Ore", "https://www.ilsole24ore.com/rss/politica.xml"),
        ("AGI", "https://www.agi.it/politica/rss"),
        ("Il Fatto Quotidiano", "https://www.ilfattoquotidiano.it/feed/"),
        ("La Stampa", "https://www.lastampa.it/politica/rss"),
        ("Il Messaggero", "https://www.ilmessaggero.it/rss/politica.xml"),
        ("Tgcom24", "https://www.tgcom24.mediaset.it/rss/politica.xml"),
    ],
    NewsCategory.SPORTS: [
        ("Gazzetta dello Sport", "https://www.gazzetta.it/rss/calcio.xml"),
        ("Corriere dello Sport", "https://www.corrieredellosport.it/feed"),
        ("TuttoSport", "https://www.tuttosport.com/feed"),
        ("Sky Sport", "https://sport.sky.it/rss/calcio_rss.xml"),
        ("ANSA Sport", "https://www.ansa.it/sito/notizie/sport/calcio/calcio_rss.xml"),
        ("La Repubblica Sport", "https://www.repubblica.it/rss/sport/calcio/rss2.0.xml"),
        ("Corriere Sport", "https://xml2.corriereobjects.it/rss/homepage_sport.xml"),
    ],
    NewsCategory.BUSINESS: [
        ("Il Sole 24 Ore", "https://www.ilsole24ore.com/rss/economia.xml"),
        ("Milano Finanza", "https://www.milanofinanza.it/rss"),
        ("ANSA Economia", "https://www.ansa.it/sito/notizie/economia/economia_rss.xml"),
        ("La Repubblica Economia", "https://www.repubblica.it/rss/economia/rss2.0.xml"),
        ("Corriere Economia", "https://xml2.corriereobjects.it/rss/economia.xml"),
        ("Il Fatto Economia", "https://www.ilfattoquotidiano.it/economia/feed/"),
        ("AGI Economia", "https://www.agi.it/economia/rss"),
        ("Borsa Italiana", "https://www.borsaitaliana.it/borsa/rss/ultime-notizie.rss"),
    ],
    NewsCategory.TECHNOLOGY: [
        ("ANSA Tecnologia", "https://www.ansa.it/sito/notizie/tecnologia/tecnologia_rss.xml"),
        ("La Repubblica Tech", "https://www.repubblica.it/rss/tecnologia/rss2.0.xml"),
        ("Corriere Innovazione", "https://xml2.corriereobjects.it/rss/tecnologia.xml"),
        ("Il Sole 24 Ore Tech", "https://www.ilsole24ore.com/rss/tecnologia.xml"),
        ("AGI Tecnologia", "https://www.agi.it/innovazione/rss"),
        ("Tom's Hardware Italia", "https://www.tomshw.it/feed"),
        ("HDBlog", "https://www.hdblog.it/feed/"),
        ("Wired Italia", "https://www.wired.it/feed/rss"),
    ],
    NewsCategory.WORLD: [
        ("ANSA Esteri", "https://www.ansa.it/sito/notizie/mondo/mondo_rss.xml"),
        ("La Repubblica Esteri", "https://www.repubblica.it/rss/esteri/rss2.0.xml"),
        ("Corriere Esteri", "https://xml2.corriereobjects.it/rss/esteri.xml"),
        ("Il Sole 24 Ore Mondo", "https://www.ilsole24ore.com/rss/mondo.xml"),
        ("AGI Esteri", "https://www.agi.it/estero/rss"),
        ("Il Fatto Esteri", "https://www.ilfattoquotidiano.it/esteri/feed/"),
        ("La Stampa Esteri", "https://www.lastampa.it/esteri/rss"),
        ("Sky Mondo", "https://tg24.sky.it/mondo/rss"),
    ],
    NewsCategory.ENTERTAINMENT: [
        ("ANSA Spettacolo", "https://www.ansa.it/sito/notizie/cultura/cultura_rss.xml"),
        ("La Repubblica Spettacoli", "https://www.repubblica.it/rss/spettacoli/rss2.0.xml"),
        ("Corriere Spettacoli", "https://xml2.corriereobjects.it/rss/spettacoli.xml"),
        ("Il Fatto Spettacoli", "https://www.ilfattoquotidiano.it/feed/"),
        ("Sky Spettacolo", "https://tg24.sky.it/spettacolo/rss"),
        ("Fanpage", "https://www.fanpage.it/feed/"),
        ("Movieplayer", "https://www.movieplayer.it/feed/"),
    ],
    NewsCategory.CRIME: [
        ("ANSA Cronaca", "https://www.ansa.it/sito/notizie/cronaca/cronaca_rss.xml"),
        ("La Repubblica Cronaca", "https://www.repubblica.it/rss/cronaca/rss2.0.xml"),
        ("Corriere Cronache", "https://xml2.corriereobjects.it/rss/cronache.xml"),
        ("Il Fatto Cronaca", "https://www.ilfattoquotidiano.it/cronaca/feed/"),
        ("AGI Cronaca", "https://www.agi.it/cronaca/rss"),
        ("La Stampa Cronaca", "https://www.lastampa.it/cronaca/rss"),
        ("Il Messaggero Cronaca", "https://www.ilmessaggero.it/rss/cronaca.xml"),
        ("Sky Cronaca", "https://tg24.sky.it/cronaca/rss"),
    ],
    NewsCategory.LIFESTYLE: [
        ("La Cucina Italiana", "https://www.lacucinaitaliana.it/rss"),
        ("Giallo Zafferano", "https://www.giallozafferano.it/rss/ricette-del-giorno/"),
        ("Sale&Pepe", "https://www.salepepe.it/feed/"),
        ("Vogue Italia", "https://www.vogue.it/rss"),
        ("Elle Italia", "https://www.elle.com/it/rss/"),
        ("Gambero Rosso", "https://www.gamberorosso.it/feed/"),
        ("Dove Viaggi", "https://www.dove.it/feed/"),
    ],
    NewsCategory.AUTOMOTIVE: [
        ("Quattroruote", "https://www.quattroruote.it/rss/news.xml"),
        ("Autoblog Italia", "https://it.autoblog.com/rss.xml"),
        ("Corriere Motori", "https://xml2.corriereobjects.it/rss/motori.xml"),
        ("La Repubblica Motori", "https://www.repubblica.it/rss/motori/rss2.0.xml"),
        ("ANSA Motori", "https://www.ansa.it/canale_motori/notizie/motori_rss.xml"),
        ("Automoto", "https://www.automoto.it/feed"),
        ("Motor1 Italia", "https://it.motor1.com/rss/all/"),
    ],
}

INTERNATIONAL_SOURCES: Dict[NewsCategory, FeedList] = {
    NewsCategory.GENERAL: [
        ("BBC News", "http://feeds.bbci.co.uk/news/rss.xml"),
        ("NPR", "https://feeds.npr.org/1001/rss.xml"),
        ("The New York Times", "https://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml"),
        ("CNN", "http://rss.cnn.com/rss/edition.rss"),
    ],
    NewsCategory.WORLD: [
        ("The Guardian", "https://www.theguardian.com/world/rss"),
        ("Al Jazeera English", "https://www.aljazeera.com/xml/rss/all.xml"),
        ("The Washington Post", "http://feeds.washingtonpost.com/rss/world"),
        ("Los Angeles Times", "https://www.latimes.com/world-nation/rss2.0.xml"),
    ],
    NewsCategory.BUSINESS: [
        ("BBC Business", "https://feeds.bbci.co.uk/news/business/rss.xml"),
        ("CNBC", "https://www.cnbc.com/id/100003114/device/rss/rss.html"),
        ("Financial Times", "https://www.ft.com/?edition=international&format=rss"),
    ],
    NewsCategory.SPORTS: [
        ("BBC Sport", "http://feeds.bbci.co.uk/sport/rss.xml"),
        ("ESPN", "https://www.espn.com/espn/rss/news"),
        ("Sky Sports", "https://www.skysports.com/rss/12040"),
        ("CBS Sports", "https://www.cbssports.com/rss/headlines/"),
    ],
    NewsCategory.TECHNOLOGY: [
        ("The Verge", "https://www.theverge.com/rss/index.xml"),
        ("Wired", "https://www.wired.com/feed/rss"),
        ("MIT Technology Review", "https://www.technologyreview.com/topnews.rss"),
        ("IEEE Spectrum", "https://spectrum.ieee.org/rss/fulltext"),
    ],
    NewsCategory.ENTERTAINMENT: [
        ("E! News", "https://www.eonline.com/syndication/feeds/rssfeeds/topstories.xml"),
        ("Screen International", "https://screendaily.com/45202.rss"),
    ],
    NewsCategory.SCIENCE: [
        ("Nature", "http://feeds.nature.com/nature/rss/current"),
        ("Science Magazine", "https://www.sciencemag.org/rss/news_current.xml"),
    ],
}

SOURCES: Dict[str, Dict[NewsCategory, FeedList]] = {
    "it": ITALIAN_SOURCES,
    GLOBAL: INTERNATIONAL_SOURCES,
}


def feeds_for(
    country: Optional[str],
    category: Optional[NewsCategory],
    table: Optional[Dict[str, Dict[NewsCategory, FeedList]]] = None
) -> FeedList:
    """
    Look up the feeds for a country and category.

    A missing category falls back to the country's general list. An unknown
    country has no feeds at all.
    """
    by_category = (table if table is not None else SOURCES).get(country or GLOBAL)
    if not by_category:
        return []
    feeds = by_category.get(category or NewsCategory.GENERAL)
    if feeds is None:
        feeds = by_category.get(NewsCategory.GENERAL, [])
    return list(feeds)

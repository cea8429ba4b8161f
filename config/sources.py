# config/sources.py
# Catálogo de fuentes RSS por categoría
# =====================================

"""
Este archivo define las fuentes RSS que el sistema monitoriza, agrupadas por
categoría temática. Cada categoría es dueña de una lista fija de fuentes y
cada fuente pertenece exactamente a una categoría: un mismo medio (El País,
ABC...) aparece varias veces, pero siempre con un feed distinto y un id propio
(`<medio>-<categoría>`).

Atributos de cada fuente:
- name: nombre visible del medio
- url: URL del feed RSS/Atom
- category: categoría que posee la fuente
- language: idioma del contenido
"""

# General: portadas de los grandes diarios
# ========================================

GENERAL_SOURCES = {
    "elpais-general": {
        "name": "El País",
        "url": "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/portada",
        "category": "general",
        "language": "es",
    },
    "elmundo-general": {
        "name": "El Mundo",
        "url": "https://e00-elmundo.uecdn.es/elmundo/rss/portada.xml",
        "category": "general",
        "language": "es",
    },
    "abc-general": {
        "name": "ABC",
        "url": "https://www.abc.es/rss/2.0/portada/",
        "category": "general",
        "language": "es",
    },
    "lavanguardia-general": {
        "name": "La Vanguardia",
        "url": "https://www.lavanguardia.com/rss/home.xml",
        "category": "general",
        "language": "es",
    },
    "20minutos-general": {
        "name": "20 Minutos",
        "url": "https://www.20minutos.es/rss/",
        "category": "general",
        "language": "es",
    },
    "elconfidencial-general": {
        "name": "El Confidencial",
        "url": "https://www.elconfidencial.com/rss/",
        "category": "general",
        "language": "es",
    },
    "eldiario-general": {
        "name": "elDiario.es",
        "url": "https://www.eldiario.es/rss/",
        "category": "general",
        "language": "es",
    },
}

# Internacional
# =============

INTERNACIONAL_SOURCES = {
    "elpais-internacional": {
        "name": "El País",
        "url": "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/internacional",
        "category": "internacional",
        "language": "es",
    },
    "elmundo-internacional": {
        "name": "El Mundo",
        "url": "https://e00-elmundo.uecdn.es/elmundo/rss/internacional.xml",
        "category": "internacional",
        "language": "es",
    },
    "abc-internacional": {
        "name": "ABC",
        "url": "https://www.abc.es/rss/2.0/internacional/",
        "category": "internacional",
        "language": "es",
    },
    "lavanguardia-internacional": {
        "name": "La Vanguardia",
        "url": "https://www.lavanguardia.com/rss/internacional.xml",
        "category": "internacional",
        "language": "es",
    },
}

# Deportes: prensa deportiva especializada
# ========================================

DEPORTES_SOURCES = {
    "as-deportes": {
        "name": "AS",
        "url": "https://as.com/rss/tags/ultimas_noticias.xml",
        "category": "deportes",
        "language": "es",
    },
    "marca-deportes": {
        "name": "Marca",
        "url": "https://e00-marca.uecdn.es/rss/portada.xml",
        "category": "deportes",
        "language": "es",
    },
    "mundodeportivo-deportes": {
        "name": "Mundo Deportivo",
        "url": "https://www.mundodeportivo.com/rss/futbol.xml",
        "category": "deportes",
        "language": "es",
    },
    "sport-deportes": {
        "name": "Sport",
        "url": "https://www.sport.es/rss/last-news/football.xml",
        "category": "deportes",
        "language": "es",
    },
    "superdeporte-deportes": {
        "name": "Superdeporte",
        "url": "https://www.superdeporte.es/rss/section/3",
        "category": "deportes",
        "language": "es",
    },
}

# Economía
# ========

ECONOMIA_SOURCES = {
    "20minutos-economia": {
        "name": "20 Minutos",
        "url": "https://www.20minutos.es/rss/economia",
        "category": "economia",
        "language": "es",
    },
    "elpais-economia": {
        "name": "El País",
        "url": "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/economia",
        "category": "economia",
        "language": "es",
    },
    "eleconomista-economia": {
        "name": "El Economista",
        "url": "https://www.eleconomista.es/rss/rss-economia.php",
        "category": "economia",
        "language": "es",
    },
    "cincodias-economia": {
        "name": "Cinco Días",
        "url": "https://cincodias.elpais.com/seccion/rss/",
        "category": "economia",
        "language": "es",
    },
    "expansion-economia": {
        "name": "Expansión",
        "url": "https://www.expansion.com/rss/portada.xml",
        "category": "economia",
        "language": "es",
    },
}

# Política nacional
# =================

POLITICA_SOURCES = {
    "europapress-politica": {
        "name": "Europa Press",
        "url": "https://www.europapress.es/rss/rss.aspx?ch=00066",
        "category": "politica",
        "language": "es",
    },
    "elpais-politica": {
        "name": "El País",
        "url": "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/espana",
        "category": "politica",
        "language": "es",
    },
    "abc-politica": {
        "name": "ABC",
        "url": "https://www.abc.es/rss/2.0/espana/",
        "category": "politica",
        "language": "es",
    },
    "eldiario-politica": {
        "name": "elDiario.es",
        "url": "https://www.eldiario.es/rss/politica/",
        "category": "politica",
        "language": "es",
    },
}

# Ciencia y salud
# ===============

CIENCIA_SOURCES = {
    "elpais-ciencia": {
        "name": "El País",
        "url": "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/ciencia",
        "category": "ciencia",
        "language": "es",
    },
    "20minutos-ciencia": {
        "name": "20 Minutos",
        "url": "https://www.20minutos.es/rss/salud",
        "category": "ciencia",
        "language": "es",
    },
    "sinc-ciencia": {
        "name": "SINC",
        "url": "https://www.agenciasinc.es/var/ezwebin_site/storage/rss/rss_design_es.xml",
        "category": "ciencia",
        "language": "es",
    },
    "abc-ciencia": {
        "name": "ABC",
        "url": "https://www.abc.es/rss/2.0/ciencia/",
        "category": "ciencia",
        "language": "es",
    },
}

# Tecnología
# ==========

TECNOLOGIA_SOURCES = {
    "20minutos-tecnologia": {
        "name": "20 Minutos",
        "url": "https://www.20minutos.es/rss/tecnologia",
        "category": "tecnologia",
        "language": "es",
    },
    "elmundo-tecnologia": {
        "name": "El Mundo",
        "url": "https://e00-elmundo.uecdn.es/elmundo/rss/navegante.xml",
        "category": "tecnologia",
        "language": "es",
    },
    "xataka-tecnologia": {
        "name": "Xataka",
        "url": "https://www.xataka.com/index.xml",
        "category": "tecnologia",
        "language": "es",
    },
    "genbeta-tecnologia": {
        "name": "Genbeta",
        "url": "https://www.genbeta.com/index.xml",
        "category": "tecnologia",
        "language": "es",
    },
    "hipertextual-tecnologia": {
        "name": "Hipertextual",
        "url": "https://hipertextual.com/feed",
        "category": "tecnologia",
        "language": "es",
    },
}

# Cultura
# =======

CULTURA_SOURCES = {
    "elpais-cultura": {
        "name": "El País",
        "url": "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/cultura",
        "category": "cultura",
        "language": "es",
    },
    "20minutos-cultura": {
        "name": "20 Minutos",
        "url": "https://www.20minutos.es/rss/cultura",
        "category": "cultura",
        "language": "es",
    },
    "abc-cultura": {
        "name": "ABC",
        "url": "https://www.abc.es/rss/2.0/cultura/",
        "category": "cultura",
        "language": "es",
    },
    "elmundo-cultura": {
        "name": "El Mundo",
        "url": "https://e00-elmundo.uecdn.es/elmundo/rss/cultura.xml",
        "category": "cultura",
        "language": "es",
    },
}

RSS_SOURCES = {
    **GENERAL_SOURCES,
    **INTERNACIONAL_SOURCES,
    **DEPORTES_SOURCES,
    **ECONOMIA_SOURCES,
    **POLITICA_SOURCES,
    **CIENCIA_SOURCES,
    **TECNOLOGIA_SOURCES,
    **CULTURA_SOURCES,
}

# Categorías
# ==========
# Etiquetas visibles y alias aceptados por el disparador de ingesta.

CATEGORY_LABELS = {
    "general": "General",
    "internacional": "Internacional",
    "deportes": "Deportes",
    "economia": "Economía",
    "politica": "Política",
    "ciencia": "Ciencia",
    "tecnologia": "Tecnología",
    "cultura": "Cultura",
}

CATEGORY_ALIASES = {
    "business": "economia",
    "entertainment": "cultura",
    "health": "ciencia",
    "science": "ciencia",
    "sports": "deportes",
    "technology": "tecnologia",
    "world": "internacional",
    "politics": "politica",
    "economía": "economia",
    "política": "politica",
    "tecnología": "tecnologia",
}


def validate_sources(sources=None):
    """
    Verifica que el catálogo esté bien formado.

    Comprueba campos obligatorios, categorías conocidas y URLs http(s).
    Lanza ValueError con el primer problema encontrado.
    """
    sources = RSS_SOURCES if sources is None else sources
    required_fields = ["name", "url", "category"]

    for source_id, source_config in sources.items():
        for field in required_fields:
            if not source_config.get(field):
                raise ValueError(f"Fuente {source_id} le falta el campo {field}")

        if source_config["category"] not in CATEGORY_LABELS:
            raise ValueError(
                f"Fuente {source_id} usa una categoría desconocida: {source_config['category']}"
            )

        url = source_config["url"]
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"URL de {source_id} no es válida: {url}")

    return len(sources)

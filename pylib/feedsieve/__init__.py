'''feedsieve: keyword-filtering proxy for Atom feeds, served as Atom or RSS.'''

__version__ = '0.1.0'

from django.apps import AppConfig


class FatoolkitConfig(AppConfig):
    name = 'fatoolkit'
    verbose_name = 'Finite automaton toolkit'

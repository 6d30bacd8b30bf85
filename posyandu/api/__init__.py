# posyandu/api/__init__.py

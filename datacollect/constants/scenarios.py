"""Default role-play scenarios and bot texts (pt-PT)."""

WELCOME_MESSAGE = (
    "{greeting}\n\n"
    "O objetivo deste bot é obter frases de pacientes a explicar os sintomas que têm. "
    "O que vamos fazer é o seguinte: Eu vou-te apresentar um sintoma e tu vais simular ser o paciente.\n\n"
    'Se eu disser por exemplo: "És uma mulher de 26 anos que teve um sangramento na gravidez" '
    'tu deverás ser capaz de responder à pergunta "O que se passa contigo?" '
    "interpretando o papel dessa mulher."
)

# Display name some channels use when the user has none
ANONYMOUS_USER_NAME = "User"

RETRY_PROMPT = "Não percebi. Escreve por palavras tuas o que estás a sentir."

SCENARIO_COMPLETE_MESSAGE = (
    "Obrigado! Terminámos este cenário. Envia uma mensagem quando quiseres começar outro."
)

FIRST_QUESTION_TEMPLATES = {
    "paciente": "És {person} de {age} anos e tens {symptom}. O que se passa contigo?",
    "mãe": "És a mãe de {person} de {age} anos que tem {symptom}. O que se passa com a criança?",
    "pai": "És o pai de {person} de {age} anos que tem {symptom}. O que se passa com a criança?",
}

FOLLOW_UP_QUESTION_TEMPLATES = {
    "paciente": "Agora, além disso, tens {symptom}. Como descreverias o que estás a sentir?",
    "mãe": "Agora a criança também tem {symptom}. Como descreverias o que ela está a sentir?",
    "pai": "Agora a criança também tem {symptom}. Como descreverias o que ela está a sentir?",
}

PERSON_BY_GENDER = {
    "feminino": {"adult": "uma mulher", "child": "uma menina"},
    "masculino": {"adult": "um homem", "child": "um menino"},
}

DEFAULT_SCENARIOS = [
    {
        "id": "gravidez-sangramento",
        "destiny": "obstetricia",
        "relation": "paciente",
        "gender": "feminino",
        "min_age": 18,
        "max_age": 42,
        "symptoms": [
            "um sangramento na gravidez",
            "dores fortes na barriga",
            "tonturas quando te levantas",
        ],
    },
    {
        "id": "febre-adulto",
        "destiny": "medicina_geral",
        "relation": "paciente",
        "gender": "masculino",
        "min_age": 20,
        "max_age": 70,
        "symptoms": [
            "febre alta há dois dias",
            "dores no corpo",
            "tosse seca",
            "dificuldade em respirar",
        ],
    },
    {
        "id": "dor-peito",
        "destiny": "urgencia",
        "relation": "paciente",
        "gender": "masculino",
        "min_age": 45,
        "max_age": 80,
        "symptoms": [
            "uma dor no peito que aperta",
            "dor que se espalha para o braço esquerdo",
            "suores frios",
        ],
    },
    {
        "id": "crianca-vomitos",
        "destiny": "pediatria",
        "relation": "mãe",
        "gender": "feminino",
        "min_age": 2,
        "max_age": 9,
        "symptoms": [
            "vómitos desde a manhã",
            "diarreia",
            "muito sono e pouca vontade de brincar",
        ],
    },
    {
        "id": "crianca-erupcao",
        "destiny": "pediatria",
        "relation": "pai",
        "gender": "masculino",
        "min_age": 1,
        "max_age": 12,
        "symptoms": [
            "manchas vermelhas na pele",
            "comichão",
            "febre",
        ],
    },
    {
        "id": "enxaqueca",
        "destiny": "neurologia",
        "relation": "paciente",
        "gender": "feminino",
        "min_age": 16,
        "max_age": 60,
        "symptoms": [
            "uma dor de cabeça muito forte de um dos lados",
            "enjoo",
            "a luz incomoda-te os olhos",
        ],
    },
]
